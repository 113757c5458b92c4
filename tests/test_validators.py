from library_app.errors import ErrorKind, LibraryError, error_payload
from library_app.validators import TextValidator, validate_book_payload, validate_loan_payload


def test_valid_book_payload():
    assert validate_book_payload({"isbn": "1234", "title": "My Adventures", "author": "Mary"}) is None


def test_book_payload_reports_fields_in_order():
    error = validate_book_payload({"author": "   "})

    assert error.kind is ErrorKind.FIELD_VALIDATION
    assert error.to_payload() == {
        "errors": [
            "isbn must not be empty",
            "title must not be empty",
            "author must not be empty",
        ]
    }


def test_loan_payload_missing_customer():
    error = validate_loan_payload({"isbn": "123", "customer": None})

    assert error.messages == ("customer must not be empty",)


def test_blank_text():
    assert TextValidator.is_blank(None)
    assert TextValidator.is_blank(" \t")
    assert not TextValidator.is_blank("x")


def test_business_errors_carry_a_single_message():
    assert LibraryError.duplicate_isbn().to_payload() == {"errors": ["Isbn already registered"]}
    assert LibraryError.business_rule("Book already borrowed").message == "Book already borrowed"
    assert error_payload(["a", "b"]) == {"errors": ["a", "b"]}
