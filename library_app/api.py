import datetime
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from library_app.book import Book
from library_app.config import settings
from library_app.database import get_db_connection
from library_app.errors import BOOK_NOT_FOUND, ErrorKind, LibraryError, error_payload
from library_app.library import Library
from library_app.validators import (
    BOOK_FIELDS,
    LOAN_FIELDS,
    missing_field_messages,
    validate_book_payload,
    validate_loan_payload,
)

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

library: Optional[Library] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: open the library on the configured database file
    global library
    library = Library(db_file=settings.database_file)
    logger.info(f"Library ready on {settings.database_file}")
    yield


app = FastAPI(title=settings.app_name, version=settings.app_version,
              debug=settings.debug, lifespan=lifespan)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Models ---
class BookCreateModel(BaseModel):
    isbn: str | None = Field(default=None, description="Unique ISBN of the book")
    title: str | None = None
    author: str | None = None


class BookModel(BaseModel):
    id: int
    isbn: str
    title: str
    author: str


class LoanCreateModel(BaseModel):
    isbn: str | None = Field(default=None, description="ISBN of the book to borrow")
    customer: str | None = None


class LoanReturnModel(BaseModel):
    returned: bool = True


class LoanModel(BaseModel):
    id: int
    isbn: str
    customer: str
    date: datetime.date
    returned: bool


# --- Error mapping ---
def error_response(error: LibraryError, status_code: int = 400) -> JSONResponse:
    """Turn a rejected request into the ``{"errors": [...]}`` response.

    Field and business errors are client errors (400); a missing book during
    loan creation is a rejected request, not a missing resource.
    """
    return JSONResponse(status_code=status_code, content=error.to_payload())


# Declared body fields of the create endpoints, in reporting order
_BODY_FIELDS = {
    ("POST", "/api/books"): BOOK_FIELDS,
    ("POST", "/api/loans"): LOAN_FIELDS,
}
_LOCATIONS = ("body", "path", "query", "header", "cookie")


def _error_field(err: dict) -> str:
    if err.get("type") == "json_invalid":
        return "body"
    loc = [str(part) for part in err.get("loc", ())]
    if loc and loc[0] in _LOCATIONS:
        loc = loc[1:]
    return ".".join(loc) if loc else "body"


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report schema failures and blank fields together, one message per field."""
    schema_errors = {}
    for err in exc.errors():
        field = _error_field(err)
        schema_errors.setdefault(field, f"{field}: {err.get('msg')}")

    fields = _BODY_FIELDS.get((request.method, request.url.path), ())
    body = exc.body if isinstance(exc.body, dict) else None
    missing = missing_field_messages(body, fields) if body is not None else {}

    messages = []
    for field in fields:
        if field in schema_errors:
            messages.append(schema_errors.pop(field))
        elif field in missing:
            messages.append(missing[field])
    messages.extend(schema_errors.values())
    return JSONResponse(status_code=400, content=error_payload(messages))


def get_library() -> Library:
    global library
    if library is None:
        library = Library(db_file=settings.database_file)
    return library


# --- Health ---
@app.get("/health")
async def health():
    db_ok = True
    try:
        conn = get_db_connection(settings.database_file)
        conn.execute("SELECT 1")
        conn.close()
    except Exception:
        logger.exception("Health check could not reach the database")
        db_ok = False
    return {
        "status": "healthy" if db_ok else "degraded",
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "db": db_ok,
    }


# --- Books ---
@app.post("/api/books", status_code=201, response_model=BookModel)
def create_book(payload: BookCreateModel):
    data = payload.model_dump()
    invalid = validate_book_payload(data)
    if invalid:
        return error_response(invalid)

    book, error = get_library().register_book(Book(**data))
    if error:
        return error_response(error)
    return BookModel(**book.to_dict())


@app.get("/api/books", response_model=List[BookModel])
def list_books():
    return [BookModel(**book.to_dict()) for book in get_library().list_books()]


@app.get("/api/books/{isbn}", response_model=BookModel)
def get_book(isbn: str):
    book = get_library().get_book_by_isbn(isbn)
    if book is None:
        return error_response(LibraryError.not_found(BOOK_NOT_FOUND), status_code=404)
    return BookModel(**book.to_dict())


# --- Loans ---
@app.post("/api/loans", status_code=201)
def create_loan(payload: LoanCreateModel):
    data = payload.model_dump()
    invalid = validate_loan_payload(data)
    if invalid:
        return error_response(invalid)

    loan, error = get_library().create_loan(data["isbn"], data["customer"])
    if error:
        return error_response(error)
    return loan.id


@app.get("/api/loans", response_model=List[LoanModel])
def list_loans(isbn: Optional[str] = Query(default=None), customer: Optional[str] = Query(default=None)):
    return [LoanModel(**loan.to_dict()) for loan in get_library().find_loans(isbn=isbn, customer=customer)]


@app.patch("/api/loans/{loan_id}", response_model=LoanModel)
def return_loan(loan_id: int, payload: LoanReturnModel):
    loan, error = get_library().return_loan(loan_id, payload.returned)
    if error:
        status_code = 404 if error.kind is ErrorKind.NOT_FOUND else 400
        return error_response(error, status_code=status_code)
    return LoanModel(**loan.to_dict())
