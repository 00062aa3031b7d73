"""Services for the Lab Code Set Builder."""

from codeset_builder.services.attribute_audit import DuplicateAttributeEdge, find_duplicate_attribute_edges
from codeset_builder.services.code_set import CodeSetCart
from codeset_builder.services.labtest_query import build_labtest_search_query
from codeset_builder.services.labtest_search import (
    ConceptProjection,
    LabTestRow,
    LabTestSearchService,
    PanelRow,
    SearchRow,
    to_search_result,
)
from codeset_builder.services.result_filters import (
    FacetOption,
    ResultFilter,
    SortField,
    facet_options,
    filter_results,
    sort_results,
)

__all__ = [
    # Search
    "build_labtest_search_query",
    "ConceptProjection",
    "LabTestRow",
    "LabTestSearchService",
    "PanelRow",
    "SearchRow",
    "to_search_result",
    # Presentation helpers
    "FacetOption",
    "ResultFilter",
    "SortField",
    "facet_options",
    "filter_results",
    "sort_results",
    "CodeSetCart",
    # Vocabulary maintenance
    "DuplicateAttributeEdge",
    "find_duplicate_attribute_edges",
]
