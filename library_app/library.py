import datetime
import logging
from typing import Callable, List, Optional, Tuple

from library_app.book import Book
from library_app.config import settings
from library_app.database import initialize_database
from library_app.errors import (
    BOOK_ALREADY_BORROWED,
    BOOK_NOT_FOUND_FOR_ISBN,
    LOAN_NOT_FOUND,
    LibraryError,
)
from library_app.loan import Loan
from library_app.repositories import (
    BookRepository,
    ConstraintViolationError,
    LoanRepository,
    SqliteBookRepository,
    SqliteLoanRepository,
)
from library_app.validators import validate_book_payload, validate_loan_payload

logger = logging.getLogger(__name__)

BookResult = Tuple[Optional[Book], Optional[LibraryError]]
LoanResult = Tuple[Optional[Loan], Optional[LibraryError]]


class Library:
    """Registers books and hands out loans, guarding the lending rules.

    Every mutating operation returns a ``(value, error)`` pair; exactly one of
    the two is None. Nothing is written when an error is returned.
    """

    def __init__(self, db_file: Optional[str] = None, *,
                 books: Optional[BookRepository] = None,
                 loans: Optional[LoanRepository] = None,
                 today: Callable[[], datetime.date] = datetime.date.today) -> None:
        if books is None or loans is None:
            self.db_file = db_file or settings.database_file
            initialize_database(self.db_file)
        else:
            self.db_file = db_file
        self.books = books or SqliteBookRepository(self.db_file)
        self.loans = loans or SqliteLoanRepository(self.db_file)
        self._today = today

    # ------------------------- Books ------------------------- #
    def register_book(self, book: Book) -> BookResult:
        """Store a new book unless its isbn is already registered."""
        invalid = validate_book_payload(book.to_dict())
        if invalid:
            return None, invalid

        if self.books.exists_by_isbn(book.isbn):
            logger.warning(f"Rejected registration, isbn {book.isbn} already registered")
            return None, LibraryError.duplicate_isbn()

        try:
            saved = self.books.save(book)
        except ConstraintViolationError:
            # Another writer registered the same isbn after our check.
            logger.warning(f"Rejected registration, isbn {book.isbn} stored concurrently")
            return None, LibraryError.duplicate_isbn()

        logger.info(f"Registered book {saved.id} with isbn {saved.isbn}")
        return saved, None

    def get_book_by_isbn(self, isbn: str) -> Optional[Book]:
        return self.books.find_by_isbn(isbn.strip())

    def list_books(self) -> List[Book]:
        return self.books.list_all()

    # ------------------------- Loans ------------------------- #
    def create_loan(self, isbn: str, customer: str) -> LoanResult:
        """Lend the book identified by ``isbn`` to ``customer``.

        Fails with NOT_FOUND when no book has the isbn and with BUSINESS_RULE
        when the book already has an unreturned loan.
        """
        invalid = validate_loan_payload({"isbn": isbn, "customer": customer})
        if invalid:
            return None, invalid

        book = self.get_book_by_isbn(isbn)
        if book is None:
            logger.warning(f"Rejected loan, no book with isbn {isbn}")
            return None, LibraryError.not_found(BOOK_NOT_FOUND_FOR_ISBN)

        if self.loans.find_active_loan_for_book(book) is not None:
            logger.warning(f"Rejected loan, book {book.isbn} already borrowed")
            return None, LibraryError.business_rule(BOOK_ALREADY_BORROWED)

        loan = Loan(book=book, customer=customer, date=self._today(), returned=False)
        try:
            saved = self.loans.save(loan)
        except ConstraintViolationError:
            logger.warning(f"Rejected loan, book {book.isbn} borrowed concurrently")
            return None, LibraryError.business_rule(BOOK_ALREADY_BORROWED)

        logger.info(f"Loan {saved.id} created for book {book.isbn} to {saved.customer}")
        return saved, None

    def return_loan(self, loan_id: int, returned: bool = True) -> LoanResult:
        """Set the returned flag of a loan.

        Re-opening a loan is refused when the book is on loan elsewhere.
        """
        loan = self.loans.find_by_id(loan_id)
        if loan is None:
            return None, LibraryError.not_found(LOAN_NOT_FOUND)

        if loan.returned == returned:
            return loan, None

        if not returned:
            active = self.loans.find_active_loan_for_book(loan.book)
            if active is not None and active.id != loan.id:
                return None, LibraryError.business_rule(BOOK_ALREADY_BORROWED)

        loan.returned = returned
        try:
            saved = self.loans.save(loan)
        except ConstraintViolationError:
            return None, LibraryError.business_rule(BOOK_ALREADY_BORROWED)

        logger.info(f"Loan {saved.id} marked returned={saved.returned}")
        return saved, None

    def find_loans(self, isbn: Optional[str] = None, customer: Optional[str] = None) -> List[Loan]:
        return self.loans.find(isbn=isbn, customer=customer)
