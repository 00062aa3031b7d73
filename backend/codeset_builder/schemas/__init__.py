"""Pydantic schemas for the Lab Code Set Builder."""

from codeset_builder.schemas.base import (
    ATTRIBUTE_RELATIONSHIPS,
    MEASUREMENT_DOMAIN_ID,
    LabTestCategory,
    RelationshipKind,
    Vocabulary,
)
from codeset_builder.schemas.labtest import (
    CartItem,
    ErrorResponse,
    LabTestSearchRequest,
    LabTestSearchResponse,
    LabTestSearchResult,
)

__all__ = [
    # Enums and constants
    "ATTRIBUTE_RELATIONSHIPS",
    "MEASUREMENT_DOMAIN_ID",
    "LabTestCategory",
    "RelationshipKind",
    "Vocabulary",
    # Lab test search
    "LabTestSearchRequest",
    "LabTestSearchResponse",
    "LabTestSearchResult",
    "ErrorResponse",
    # Cart
    "CartItem",
]
