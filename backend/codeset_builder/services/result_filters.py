"""Facets, filters and sorting over lab test search results.

Pure list transforms used by presentation clients: derive the facet options
shown next to a result table, narrow the rows by the selected facets and a
name filter, and sort by a single column.
"""

from dataclasses import dataclass
from enum import Enum

from codeset_builder.schemas.labtest import LabTestSearchResult

# Facet name -> result field
FACET_FIELDS: dict[str, str] = {
    "vocabulary": "vocabulary_id",
    "lab_test_type": "lab_test_type",
    "property": "property",
    "scale": "scale",
    "system": "system",
    "time": "time",
}


class SortField(str, Enum):
    """Result columns a table can be sorted by."""

    SEARCH_RESULT = "search_result"
    VOCABULARY_ID = "vocabulary_id"
    CONCEPT_CLASS_ID = "searched_concept_class_id"
    LAB_TEST_TYPE = "lab_test_type"
    PROPERTY = "property"
    SCALE = "scale"
    SYSTEM = "system"
    TIME = "time"


@dataclass
class FacetOption:
    """A distinct facet value and how many results carry it."""

    value: str
    count: int


@dataclass
class ResultFilter:
    """Selected facet values; None means "all"."""

    vocabulary: str | None = None
    lab_test_type: str | None = None
    property: str | None = None
    scale: str | None = None
    system: str | None = None
    time: str | None = None
    name_contains: str | None = None

    def matches(self, result: LabTestSearchResult) -> bool:
        """Check one result against every active selection."""
        for facet, field_name in FACET_FIELDS.items():
            selected = getattr(self, facet)
            if selected and _field_value(result, field_name) != selected:
                return False
        if self.name_contains and self.name_contains.lower() not in result.search_result.lower():
            return False
        return True


def _field_value(result: LabTestSearchResult, field_name: str) -> str:
    value = getattr(result, field_name)
    if isinstance(value, Enum):
        return str(value.value)
    return value or ""


def facet_options(results: list[LabTestSearchResult]) -> dict[str, list[FacetOption]]:
    """Distinct non-empty values per facet, sorted, with counts."""
    facets: dict[str, list[FacetOption]] = {}
    for facet, field_name in FACET_FIELDS.items():
        counts: dict[str, int] = {}
        for result in results:
            value = _field_value(result, field_name)
            if value:
                counts[value] = counts.get(value, 0) + 1
        facets[facet] = [FacetOption(value=value, count=counts[value]) for value in sorted(counts)]
    return facets


def filter_results(
    results: list[LabTestSearchResult],
    criteria: ResultFilter,
) -> list[LabTestSearchResult]:
    """Keep the results matching every active selection, order preserved."""
    return [result for result in results if criteria.matches(result)]


def sort_results(
    results: list[LabTestSearchResult],
    field: SortField | str,
    descending: bool = False,
) -> list[LabTestSearchResult]:
    """Sort results by one column; missing values sort as empty strings.

    The sort is stable, so rows with equal keys keep their search order.
    """
    field_name = SortField(field).value
    return sorted(
        results,
        key=lambda result: _field_value(result, field_name).casefold(),
        reverse=descending,
    )
