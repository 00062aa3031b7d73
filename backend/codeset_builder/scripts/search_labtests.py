"""Search lab tests from the command line and export a code set.

Runs the same search as ``POST /api/labtest-search`` against the configured
database, then narrows and sorts the rows the way the web table does.

Usage:
    python -m codeset_builder.scripts.search_labtests glucose
    python -m codeset_builder.scripts.search_labtests glucose --vocabulary LOINC --system "Ser/Plas"
    python -m codeset_builder.scripts.search_labtests glucose --sort property --desc
    python -m codeset_builder.scripts.search_labtests glucose --facets
    python -m codeset_builder.scripts.search_labtests glucose --type "Lab Test" --cart-out codeset.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from sqlalchemy.orm import Session

from codeset_builder.core.config import settings
from codeset_builder.core.database import close_engine, get_session_factory
from codeset_builder.schemas.labtest import LabTestSearchResult
from codeset_builder.services.code_set import CodeSetCart
from codeset_builder.services.labtest_search import LabTestSearchService
from codeset_builder.services.result_filters import (
    ResultFilter,
    SortField,
    facet_options,
    filter_results,
    sort_results,
)

logger = logging.getLogger(__name__)

TABLE_COLUMNS = (
    ("lab_test_type", 8),
    ("term_concept", 10),
    ("vocabulary_id", 6),
    ("searched_code", 10),
    ("search_result", 50),
    ("property", 10),
    ("scale", 6),
    ("system", 12),
    ("time", 4),
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Search lab test concepts")
    parser.add_argument("term", nargs="?", default="", help="Search text (blank = all)")
    parser.add_argument("--vocabulary", help="Only this vocabulary_id")
    parser.add_argument("--type", dest="lab_test_type", help='"Lab Test" or "Panel"')
    parser.add_argument("--property", help="Only this property")
    parser.add_argument("--scale", help="Only this scale type")
    parser.add_argument("--system", help="Only this system")
    parser.add_argument("--time", help="Only this time aspect")
    parser.add_argument("--name", dest="name_contains", help="Name contains (case-insensitive)")
    parser.add_argument("--sort", choices=[f.value for f in SortField], help="Sort column")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--facets", action="store_true", help="Print facet counts instead of rows")
    parser.add_argument("--cart-out", type=Path, help="Write the shown rows as a code set JSON file")
    return parser


def run_search(session: Session, args: argparse.Namespace) -> list[LabTestSearchResult]:
    """Search, filter and sort according to parsed CLI arguments."""
    results = LabTestSearchService(session).search_results(args.term)
    criteria = ResultFilter(
        vocabulary=args.vocabulary,
        lab_test_type=args.lab_test_type,
        property=args.property,
        scale=args.scale,
        system=args.system,
        time=args.time,
        name_contains=args.name_contains,
    )
    results = filter_results(results, criteria)
    if args.sort:
        results = sort_results(results, args.sort, descending=args.desc)
    return results


def format_table(results: list[LabTestSearchResult]) -> str:
    """Render rows as a fixed-width text table."""

    def cell(value: object, width: int) -> str:
        text = "" if value is None else str(getattr(value, "value", value))
        return text[:width].ljust(width)

    lines = [" ".join(cell(name, width) for name, width in TABLE_COLUMNS)]
    lines.append(" ".join("-" * width for _, width in TABLE_COLUMNS))
    for result in results:
        lines.append(" ".join(cell(getattr(result, name), width) for name, width in TABLE_COLUMNS))
    return "\n".join(lines)


def format_facets(results: list[LabTestSearchResult]) -> str:
    """Render facet values with counts."""
    lines = []
    for facet, options in facet_options(results).items():
        lines.append(f"{facet}:")
        lines.extend(f"  {option.value} ({option.count})" for option in options)
    return "\n".join(lines)


def write_cart(results: list[LabTestSearchResult], path: Path) -> int:
    """Write the rows as a code set file; returns the number of items."""
    cart = CodeSetCart()
    cart.add_many(results)
    path.write_text(json.dumps([item.model_dump() for item in cart.items], indent=2), encoding="utf-8")
    return len(cart)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    try:
        with get_session_factory()() as session:
            results = run_search(session, args)
    finally:
        close_engine()

    if args.facets:
        print(format_facets(results))
    else:
        print(format_table(results))
        print(f"\n{len(results)} results")

    if args.cart_out:
        count = write_cart(results, args.cart_out)
        logger.info(f"Wrote {count} concepts to {args.cart_out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
