#!/usr/bin/env python3
"""Bookledger CLI - Inventory & Catalog Integration."""
import argparse
import csv
import json
import logging
import sys

from tabulate import tabulate

from bookledger.app import InventoryApp
from bookledger.config import Config
from bookledger.errors import ValidationError
from bookledger.responses import respond

logger = logging.getLogger(__name__)


def _truncate(text: str, width: int) -> str:
    return text[:width] + "..." if len(text) > width else text


def display_books(books, format_type: str):
    """Display books in specified format."""
    if format_type == "table":
        headers = ["ISBN", "Title", "Authors", "Qty", "Price", "Reviews"]
        rows = [
            [
                book.isbn,
                _truncate(book.title, 50),
                _truncate(book.authors_str, 30),
                book.quantity,
                book.price if book.price is not None else "-",
                len(book.reviews)
            ]
            for book in books
        ]
        print("\n" + tabulate(rows, headers=headers, tablefmt="grid"))

    elif format_type == "json":
        print(json.dumps([book.to_dict() for book in books], indent=2, ensure_ascii=False))

    elif format_type == "compact":
        for i, book in enumerate(books, 1):
            print(f"{i}. {book.title} - {book.authors_str} (x{book.quantity})")


def render(response, format_type: str = "table") -> int:
    """
    Print a tagged response.

    Returns:
        Process exit code
    """
    if format_type == "json":
        print(json.dumps(response.to_dict(), indent=2, ensure_ascii=False))
        return 1 if response.kind == "failure" else 0

    if response.kind == "single":
        if response.created:
            print(f"✅ New book added to inventory: {response.record.title}")
        display_books([response.record], format_type)

    elif response.kind == "many":
        if not response.records:
            print("No matching books.")
        else:
            display_books(response.records, format_type)
        if response.total_pages is not None:
            print(
                f"Page {response.current_page}/{response.total_pages} "
                f"({response.total_count} books)"
            )

    elif response.kind == "removed":
        print(f"🗑️  Last copy of {response.isbn} removed; book deleted from inventory")

    elif response.kind == "modified":
        print(f"✅ Updated prices of {response.count} books")

    elif response.kind == "failure":
        hint = " (retry later)" if response.retryable else ""
        print(f"❌ {response.error}: {response.message}{hint}", file=sys.stderr)
        return 1

    return 0


def load_price_updates(path: str):
    """Read a JSON array of {"isbn", "price"} objects."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ValidationError(f"Cannot read price file {path}: {e}") from e
    except ValueError as e:
        raise ValidationError(f"Price file {path} is not valid JSON: {e}") from e


def apply_price_file(ledger, path: str) -> int:
    """Bulk-update prices from a JSON file."""
    return ledger.bulk_set_prices(load_price_updates(path))


def show_stats(app: InventoryApp) -> int:
    """Show inventory statistics."""
    stats = app.search.stats()

    print("\n" + "=" * 50)
    print("INVENTORY STATISTICS")
    print("=" * 50)
    print(f"Distinct books: {stats['total_records']}")
    print(f"Copies in stock: {stats['total_units']}")
    print(f"Books with a price: {stats['priced_records']}")
    print("=" * 50 + "\n")
    return 0


def export_data(args, app: InventoryApp) -> int:
    """Export the inventory."""
    books = list(app.search.iter_all())

    if args.format == "json":
        data = json.dumps([book.to_dict() for book in books], indent=2, ensure_ascii=False)

        if args.output:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(data)
            logger.info(f"✅ Exported {len(books)} books to {args.output}")
        else:
            print(data)

    elif args.format == "csv":
        output_file = args.output or "inventory_export.csv"
        with open(output_file, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(["ISBN", "Title", "Authors", "Publisher", "Published", "Pages", "Price", "Quantity"])

            for book in books:
                writer.writerow([
                    book.isbn,
                    book.title,
                    book.authors_str,
                    book.publisher,
                    book.published_date,
                    book.page_count,
                    book.price if book.price is not None else "",
                    book.quantity
                ])

        logger.info(f"✅ Exported {len(books)} books to {output_file}")

    return 0


def run_command(args, app: InventoryApp) -> int:
    """Dispatch a parsed command against the inventory."""
    ledger, search = app.ledger, app.search
    fmt = getattr(args, "format", "table")

    if args.command == "show":
        return render(respond(ledger.get_record, args.isbn), fmt)
    elif args.command == "add":
        return render(respond(ledger.increment, args.isbn), fmt)
    elif args.command == "remove":
        return render(respond(ledger.decrement, args.isbn), fmt)
    elif args.command == "review":
        return render(respond(ledger.append_review, args.isbn, args.text), fmt)
    elif args.command == "price":
        return render(respond(ledger.set_price, args.isbn, args.value), fmt)
    elif args.command == "prices":
        return render(respond(apply_price_file, ledger, args.file), fmt)
    elif args.command == "search":
        return render(respond(search.search, args.text), fmt)
    elif args.command == "list":
        return render(respond(search.list_page, args.page, args.limit), fmt)
    elif args.command == "stats":
        return show_stats(app)
    elif args.command == "export":
        return export_data(args, app)

    raise ValueError(f"Unknown command: {args.command}")


def build_parser(config: Config) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bookledger - Bookstore Inventory CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan a book in (fetches metadata the first time)
  %(prog)s add 9780261103252

  # Sell or remove a copy
  %(prog)s remove 9780261103252

  # Bulk price update from a JSON file
  %(prog)s prices prices.json

  # Browse and search
  %(prog)s list --page 2 --limit 10
  %(prog)s search "Yüzüklerin Efendisi"
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    def with_format(sub):
        sub.add_argument("--format", choices=["table", "json", "compact"], default="table", help="Output format")
        return sub

    show_parser = with_format(subparsers.add_parser("show", help="Show one book"))
    show_parser.add_argument("isbn", help="ISBN")

    add_parser = with_format(subparsers.add_parser("add", help="Add one copy of a book"))
    add_parser.add_argument("isbn", help="ISBN")

    remove_parser = with_format(subparsers.add_parser("remove", help="Remove one copy of a book"))
    remove_parser.add_argument("isbn", help="ISBN")

    review_parser = with_format(subparsers.add_parser("review", help="Attach a review"))
    review_parser.add_argument("isbn", help="ISBN")
    review_parser.add_argument("text", help="Review text")

    price_parser = with_format(subparsers.add_parser("price", help="Set one price"))
    price_parser.add_argument("isbn", help="ISBN")
    price_parser.add_argument("value", help="New price (unparsable values clear it)")

    prices_parser = with_format(subparsers.add_parser("prices", help="Bulk price update"))
    prices_parser.add_argument("file", help='JSON file: [{"isbn": ..., "price": ...}]')

    search_parser = with_format(subparsers.add_parser("search", help="Search by title"))
    search_parser.add_argument("text", help="Title or part of it")

    list_parser = with_format(subparsers.add_parser("list", help="List inventory page by page"))
    list_parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    list_parser.add_argument(
        "--limit", type=int, default=config.DEFAULT_PAGE_SIZE,
        help=f"Books per page (default: {config.DEFAULT_PAGE_SIZE})"
    )

    subparsers.add_parser("stats", help="Show inventory statistics")

    export_parser = subparsers.add_parser("export", help="Export inventory")
    export_parser.add_argument("--format", choices=["json", "csv"], default="json", help="Export format")
    export_parser.add_argument("--output", help="Output file (default: stdout for JSON)")

    return parser


def main(argv=None):
    """Main CLI entry point."""
    config = Config()

    logging.basicConfig(
        level=config.LOG_LEVEL,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    parser = build_parser(config)
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        with InventoryApp(config) as app:
            sys.exit(run_command(args, app))

    except KeyboardInterrupt:
        logger.info("\n⚠️  Interrupted by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"❌ Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
