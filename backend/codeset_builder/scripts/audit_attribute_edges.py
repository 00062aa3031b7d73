"""Report concepts with more than one property/scale/system/time edge.

Usage:
    python -m codeset_builder.scripts.audit_attribute_edges
    python -m codeset_builder.scripts.audit_attribute_edges --limit 50
"""

import argparse
import logging
import sys

from codeset_builder.core.config import settings
from codeset_builder.core.database import close_engine, get_session_factory
from codeset_builder.services.attribute_audit import find_duplicate_attribute_edges

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Exits 1 when duplicates exist."""
    parser = argparse.ArgumentParser(description="Audit attribute edge multiplicity")
    parser.add_argument("--limit", type=int, default=None, help="Maximum rows to report")
    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    try:
        with get_session_factory()() as session:
            duplicates = find_duplicate_attribute_edges(session, limit=args.limit)
    finally:
        close_engine()

    if not duplicates:
        print("No duplicate attribute edges found")
        return 0

    print(f"{'concept_id':>12}  {'relationship_id':<20}  edges")
    for duplicate in duplicates:
        print(f"{duplicate.concept_id:>12}  {duplicate.relationship_id:<20}  {duplicate.edge_count}")
    return 1


if __name__ == "__main__":
    sys.exit(main())
