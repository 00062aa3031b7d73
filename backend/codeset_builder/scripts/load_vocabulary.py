"""Load the lab test vocabulary from Athena CSV files.

Loads CONCEPT.csv and CONCEPT_RELATIONSHIP.csv (tab-delimited, as shipped
by athena.ohdsi.org) into the ``concepts`` and ``concept_relationships``
tables used by the lab test search.

Usage:
    # Load LOINC, CPT4, HCPCS and SNOMED with the search relationships
    python -m codeset_builder.scripts.load_vocabulary --path /path/to/vocab/

    # Load specific vocabularies only
    python -m codeset_builder.scripts.load_vocabulary --path /path/to/vocab/ --vocabularies LOINC,CPT4

    # Append instead of replacing existing rows
    python -m codeset_builder.scripts.load_vocabulary --path /path/to/vocab/ --no-clear
"""

import argparse
import csv
import logging
from collections.abc import Iterable, Iterator
from pathlib import Path

from sqlalchemy import delete, func, insert, select
from sqlalchemy.orm import Session

from codeset_builder.core.config import settings
from codeset_builder.core.database import close_engine, get_session_factory, init_db
from codeset_builder.models.vocabulary import Concept, ConceptRelationship
from codeset_builder.schemas.base import RelationshipKind, Vocabulary

logger = logging.getLogger(__name__)

# Vocabularies searched for lab tests (LOINC also holds the attribute and panel concepts)
DEFAULT_VOCABULARIES = {v.value for v in Vocabulary}

# Relationships the lab test search reads
SEARCH_RELATIONSHIPS = {kind.value for kind in RelationshipKind}

DEFAULT_BATCH_SIZE = 10000


def _read_rows(path: Path) -> Iterator[dict[str, str]]:
    """Iterate over an Athena CSV file (tab-delimited with a header row)."""
    with open(path, "r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f, delimiter="\t", quoting=csv.QUOTE_NONE)
        yield from reader


def _batched(rows: Iterable[dict], batch_size: int) -> Iterator[list[dict]]:
    batch: list[dict] = []
    for row in rows:
        batch.append(row)
        if len(batch) >= batch_size:
            yield batch
            batch = []
    if batch:
        yield batch


def clear_vocabulary(session: Session) -> None:
    """Clear existing vocabulary data."""
    session.execute(delete(ConceptRelationship))
    session.execute(delete(Concept))
    session.commit()
    logger.info("Cleared existing vocabulary data")


def load_concepts(
    session: Session,
    concept_file: Path,
    vocabularies: set[str] | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Load concepts from CONCEPT.csv.

    Args:
        session: Database session
        concept_file: Path to CONCEPT.csv
        vocabularies: vocabulary_ids to include (None = all)
        batch_size: Number of rows to insert per batch

    Returns:
        Number of concepts loaded
    """
    logger.info(f"Loading concepts from {concept_file}")

    def concept_rows() -> Iterator[dict]:
        for row in _read_rows(concept_file):
            if vocabularies and row["vocabulary_id"] not in vocabularies:
                continue
            yield {
                "concept_id": int(row["concept_id"]),
                "concept_name": row["concept_name"],
                "domain_id": row["domain_id"],
                "vocabulary_id": row["vocabulary_id"],
                "concept_class_id": row["concept_class_id"],
                "concept_code": row["concept_code"],
                "standard_concept": row.get("standard_concept") or None,
                "valid_start_date": row.get("valid_start_date") or None,
                "valid_end_date": row.get("valid_end_date") or None,
                "invalid_reason": row.get("invalid_reason") or None,
            }

    count = 0
    for batch in _batched(concept_rows(), batch_size):
        session.execute(insert(Concept), batch)
        count += len(batch)
        logger.info(f"Loaded {count:,} concepts...")

    session.commit()
    logger.info(f"Loaded {count:,} concepts total")
    return count


def load_relationships(
    session: Session,
    relationship_file: Path,
    relationship_types: set[str] | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> int:
    """Load concept relationships from CONCEPT_RELATIONSHIP.csv.

    Edges whose endpoints are not loaded, and invalidated edges, are skipped.

    Args:
        session: Database session
        relationship_file: Path to CONCEPT_RELATIONSHIP.csv
        relationship_types: relationship_ids to include (None = all)
        batch_size: Number of rows to insert per batch

    Returns:
        Number of relationships loaded
    """
    logger.info(f"Loading relationships from {relationship_file}")

    valid_concept_ids = set(session.scalars(select(Concept.concept_id)))
    logger.info(f"Found {len(valid_concept_ids):,} concepts to match relationships against")

    skipped = 0

    def relationship_rows() -> Iterator[dict]:
        nonlocal skipped
        for row in _read_rows(relationship_file):
            relationship_id = row["relationship_id"]
            if relationship_types and relationship_id not in relationship_types:
                continue

            concept_id_1 = int(row["concept_id_1"])
            concept_id_2 = int(row["concept_id_2"])
            if concept_id_1 not in valid_concept_ids or concept_id_2 not in valid_concept_ids:
                skipped += 1
                continue
            if row.get("invalid_reason"):
                skipped += 1
                continue

            yield {
                "concept_id_1": concept_id_1,
                "concept_id_2": concept_id_2,
                "relationship_id": relationship_id,
                "valid_start_date": row.get("valid_start_date") or None,
                "valid_end_date": row.get("valid_end_date") or None,
                "invalid_reason": None,
            }

    count = 0
    for batch in _batched(relationship_rows(), batch_size):
        session.execute(insert(ConceptRelationship), batch)
        count += len(batch)
        logger.info(f"Loaded {count:,} relationships (skipped {skipped:,})...")

    session.commit()
    logger.info(f"Loaded {count:,} relationships total (skipped {skipped:,} due to missing concepts or invalid)")
    return count


def load_vocabulary(
    session: Session,
    vocab_path: Path,
    vocabularies: set[str] | None = None,
    relationship_types: set[str] | None = None,
    clear_existing: bool = True,
) -> dict[str, int]:
    """Load concepts and relationships from an Athena download directory.

    Args:
        session: Database session
        vocab_path: Directory containing CONCEPT.csv and CONCEPT_RELATIONSHIP.csv
        vocabularies: vocabulary_ids to load (None = all)
        relationship_types: relationship_ids to load (None = all)
        clear_existing: Whether to clear existing data first

    Returns:
        Dictionary with counts of loaded concepts and relationships
    """
    concept_file = vocab_path / "CONCEPT.csv"
    relationship_file = vocab_path / "CONCEPT_RELATIONSHIP.csv"
    for required in (concept_file, relationship_file):
        if not required.exists():
            raise FileNotFoundError(f"{required.name} not found in {vocab_path}")

    if clear_existing:
        clear_vocabulary(session)

    concept_count = load_concepts(session, concept_file, vocabularies)
    relationship_count = load_relationships(session, relationship_file, relationship_types)

    summary = session.execute(
        select(ConceptRelationship.relationship_id, func.count())
        .group_by(ConceptRelationship.relationship_id)
        .order_by(func.count().desc())
    )
    logger.info("Relationships by type:")
    for relationship_id, count in summary:
        logger.info(f"  {relationship_id}: {count:,}")

    return {
        "concepts": concept_count,
        "relationships": relationship_count,
    }


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Load the lab test vocabulary from Athena CSV files"
    )
    parser.add_argument(
        "--path",
        type=Path,
        required=True,
        help="Path to directory containing CONCEPT.csv and CONCEPT_RELATIONSHIP.csv",
    )
    parser.add_argument(
        "--vocabularies",
        type=str,
        default=None,
        help="Comma-separated list of vocabulary_ids to load (default: LOINC,CPT4,HCPCS,SNOMED)",
    )
    parser.add_argument(
        "--all-relationships",
        action="store_true",
        help="Load every relationship type, not only the ones the search reads",
    )
    parser.add_argument(
        "--no-clear",
        action="store_true",
        help="Don't clear existing vocabulary data",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=settings.log_level)

    vocabularies = DEFAULT_VOCABULARIES
    if args.vocabularies:
        vocabularies = {v.strip() for v in args.vocabularies.split(",")}
    relationship_types = None if args.all_relationships else SEARCH_RELATIONSHIPS

    try:
        init_db()
        with get_session_factory()() as session:
            result = load_vocabulary(
                session,
                args.path,
                vocabularies=vocabularies,
                relationship_types=relationship_types,
                clear_existing=not args.no_clear,
            )
        logger.info(
            f"Load complete: {result['concepts']:,} concepts, "
            f"{result['relationships']:,} relationships"
        )
    finally:
        close_engine()


if __name__ == "__main__":
    main()
