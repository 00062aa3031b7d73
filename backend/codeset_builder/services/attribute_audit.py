"""Audit of attribute edge multiplicity in the concept relationship table.

The lab test search resolves one property, scale, system and time value per
concept. This report lists the concepts where the vocabulary carries more
than one edge of such a kind, i.e. where the search had to pick a value.
"""

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from codeset_builder.models.vocabulary import ConceptRelationship
from codeset_builder.schemas.base import ATTRIBUTE_RELATIONSHIPS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateAttributeEdge:
    """A source concept with several edges of one attribute kind."""

    concept_id: int
    relationship_id: str
    edge_count: int


def find_duplicate_attribute_edges(
    session: Session,
    limit: int | None = None,
) -> list[DuplicateAttributeEdge]:
    """Find concepts with more than one edge per attribute relationship.

    Args:
        session: SQLAlchemy session for database queries.
        limit: Optional cap on the number of rows reported.

    Returns:
        Duplicates ordered by relationship_id, then concept_id.
    """
    edge_count = func.count().label("edge_count")
    stmt = (
        select(
            ConceptRelationship.concept_id_1,
            ConceptRelationship.relationship_id,
            edge_count,
        )
        .where(
            ConceptRelationship.relationship_id.in_(
                [kind.value for kind in ATTRIBUTE_RELATIONSHIPS.values()]
            )
        )
        .group_by(ConceptRelationship.concept_id_1, ConceptRelationship.relationship_id)
        .having(func.count() > 1)
        .order_by(ConceptRelationship.relationship_id, ConceptRelationship.concept_id_1)
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    duplicates = [
        DuplicateAttributeEdge(
            concept_id=row.concept_id_1,
            relationship_id=row.relationship_id,
            edge_count=row.edge_count,
        )
        for row in session.execute(stmt)
    ]
    if duplicates:
        logger.warning(f"Found {len(duplicates)} concepts with duplicate attribute edges")
    return duplicates
