"""Lab test search service.

Executes the composed search statement and shapes each row into a tagged
variant: ``LabTestRow`` (attributes resolved) or ``PanelRow`` (no attributes).
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from sqlalchemy.orm import Session

from codeset_builder.core.config import settings
from codeset_builder.schemas.base import LabTestCategory
from codeset_builder.schemas.labtest import LabTestSearchResult
from codeset_builder.services.labtest_query import build_labtest_search_query

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConceptProjection:
    """Columns shared by every search result row."""

    concept_id: int
    concept_name: str
    concept_code: str
    concept_class_id: str
    vocabulary_id: str


@dataclass(frozen=True)
class LabTestRow(ConceptProjection):
    """A matched lab test with its LOINC axis attributes."""

    category: ClassVar[LabTestCategory] = LabTestCategory.LAB_TEST

    property: str | None = None
    scale: str | None = None
    system: str | None = None
    time: str | None = None


@dataclass(frozen=True)
class PanelRow(ConceptProjection):
    """A LOINC panel containing at least one matched lab test."""

    category: ClassVar[LabTestCategory] = LabTestCategory.PANEL


SearchRow = LabTestRow | PanelRow


def row_from_mapping(record: Mapping[str, Any]) -> SearchRow:
    """Convert one result row (keyed by RESULT_COLUMNS) into its variant."""
    projection = {
        "concept_id": record["term_concept"],
        "concept_name": record["search_result"],
        "concept_code": record["searched_code"],
        "concept_class_id": record["searched_concept_class_id"],
        "vocabulary_id": record["vocabulary_id"],
    }
    category = LabTestCategory(record["lab_test_type"])
    if category is LabTestCategory.PANEL:
        return PanelRow(**projection)
    return LabTestRow(
        **projection,
        property=record["property"],
        scale=record["scale"],
        system=record["system"],
        time=record["time"],
    )


def to_search_result(row: SearchRow) -> LabTestSearchResult:
    """Flatten a variant row into the wire record."""
    attributes: dict[str, str | None] = {}
    if isinstance(row, LabTestRow):
        attributes = {
            "property": row.property,
            "scale": row.scale,
            "system": row.system,
            "time": row.time,
        }
    return LabTestSearchResult(
        lab_test_type=row.category,
        term_concept=row.concept_id,
        search_result=row.concept_name,
        searched_code=row.concept_code,
        searched_concept_class_id=row.concept_class_id,
        vocabulary_id=row.vocabulary_id,
        **attributes,
    )


class LabTestSearchService:
    """Search the vocabulary for lab tests and the panels containing them.

    Read-only and stateless apart from the session it is given. Database
    errors (``SQLAlchemyError``) propagate to the caller unchanged.

    Usage:
        service = LabTestSearchService(session)
        rows = service.search("glucose")
    """

    def __init__(
        self,
        session: Session,
        result_limit: int | None = None,
        escape_wildcards: bool | None = None,
    ) -> None:
        """Initialize the search service.

        Args:
            session: SQLAlchemy session for query execution.
            result_limit: Cap on "Lab Test" rows (default: settings.search_result_limit).
            escape_wildcards: Match % and _ literally (default: settings.search_escape_wildcards).
        """
        self._session = session
        self._result_limit = settings.search_result_limit if result_limit is None else result_limit
        self._escape_wildcards = (
            settings.search_escape_wildcards if escape_wildcards is None else escape_wildcards
        )

    def search(self, term: str = "") -> list[SearchRow]:
        """Run the lab test search.

        Args:
            term: Free text; blank returns the full scoped list.

        Returns:
            Rows ordered by vocabulary_id then concept_id. May be empty.
        """
        term = (term or "").strip()
        logger.debug(
            f"Lab test search: term='{term}', limit={self._result_limit}, "
            f"wildcards {'escaped' if self._escape_wildcards else 'active'}"
        )

        stmt = build_labtest_search_query(
            term,
            limit=self._result_limit,
            escape_wildcards=self._escape_wildcards,
        )
        result = self._session.execute(stmt)
        rows = [row_from_mapping(record) for record in result.mappings()]

        panel_count = sum(1 for row in rows if isinstance(row, PanelRow))
        logger.debug(f"Lab test search returned {len(rows) - panel_count} lab tests, {panel_count} panels")
        return rows

    def search_results(self, term: str = "") -> list[LabTestSearchResult]:
        """Run the search and return wire records."""
        return [to_search_result(row) for row in self.search(term)]
