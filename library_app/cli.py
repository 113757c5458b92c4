import logging
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from library_app.book import Book
from library_app.config import settings
from library_app.library import Library

APP_NAME = "Library CLI"

console = Console()
app = typer.Typer(help=APP_NAME)


def _get_library() -> Library:
    return Library(db_file=settings.database_file)


def _print_errors(messages) -> None:
    for message in messages:
        console.print(f"[bold red]Error:[/] {escape(message)}")


@app.callback()
def _global_options(
    db_file: Optional[str] = typer.Option(None, "--db-file", help="SQLite database file to use"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Global options shared by every command."""
    if db_file:
        settings.database_file = db_file
    logging.basicConfig(level=logging.DEBUG if verbose else settings.log_level)


@app.command("serve")
def cli_serve(
    host: str = typer.Option(settings.api_host, help="Interface to bind"),
    port: int = typer.Option(settings.api_port, help="Port to listen on"),
):
    """Run the HTTP API."""
    console.print(f"Starting API on http://{host}:{port}")
    uvicorn.run("library_app.api:app", host=host, port=port, log_level=settings.log_level.lower())


@app.command("register")
def cli_register(isbn: str, title: str, author: str):
    """Register a new book."""
    book, error = _get_library().register_book(Book(isbn=isbn, title=title, author=author))
    if error:
        _print_errors(error.messages)
        raise typer.Exit(code=1)
    console.print(f"Registered #{book.id}: {escape(book.title)} by {escape(book.author)}")


@app.command("find")
def cli_find(isbn: str):
    """Show a book by ISBN."""
    book = _get_library().get_book_by_isbn(isbn)
    if book is None:
        console.print(f"Book with ISBN {escape(isbn)} not found.")
        raise typer.Exit(code=1)
    console.print("Book Found")
    console.print(f"Title: {escape(book.title)}")
    console.print(f"Author: {escape(book.author)}")
    console.print(f"ISBN: {escape(book.isbn)}")


@app.command("lend")
def cli_lend(isbn: str, customer: str):
    """Lend a book to a customer."""
    loan, error = _get_library().create_loan(isbn, customer)
    if error:
        _print_errors(error.messages)
        raise typer.Exit(code=1)
    console.print(f"Loan {loan.id} created: {escape(isbn)} to {escape(loan.customer)} on {loan.date.isoformat()}")


@app.command("return")
def cli_return(loan_id: int):
    """Mark a loan as returned."""
    loan, error = _get_library().return_loan(loan_id, True)
    if error:
        _print_errors(error.messages)
        raise typer.Exit(code=1)
    console.print(f"Loan {loan.id} returned.")


@app.command("loans")
def cli_loans(
    isbn: Optional[str] = typer.Option(None, help="Only loans of this book"),
    customer: Optional[str] = typer.Option(None, help="Only loans of this customer"),
):
    """List loans."""
    loans = _get_library().find_loans(isbn=isbn, customer=customer)
    if not loans:
        console.print("No loans found.")
        return
    table = Table(title="Loans")
    table.add_column("ID", justify="right")
    table.add_column("ISBN")
    table.add_column("Customer")
    table.add_column("Date")
    table.add_column("Returned")
    for loan in loans:
        table.add_row(str(loan.id), loan.book.isbn, escape(loan.customer),
                      loan.date.isoformat(), "no" if loan.is_active else "yes")
    console.print(table)


if __name__ == "__main__":
    app()
