"""Pydantic schemas for the lab test search API and code set cart."""

from pydantic import BaseModel, Field, field_validator

from codeset_builder.schemas.base import MEASUREMENT_DOMAIN_ID, LabTestCategory


class LabTestSearchRequest(BaseModel):
    """Request body for lab test search."""

    searchterm: str | None = Field(
        "",
        description="Text matched against concept id, code and name. Blank returns the full scoped list.",
    )

    @field_validator("searchterm")
    @classmethod
    def strip_searchterm(cls, value: str | None) -> str:
        return (value or "").strip()


class LabTestSearchResult(BaseModel):
    """Single lab test search result as sent to the client."""

    lab_test_type: LabTestCategory
    term_concept: int
    search_result: str
    searched_code: str
    searched_concept_class_id: str
    vocabulary_id: str
    property: str | None = None
    scale: str | None = None
    system: str | None = None
    time: str | None = None


class LabTestSearchResponse(BaseModel):
    """Successful lab test search response."""

    success: bool = True
    data: list[LabTestSearchResult] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Failure envelope shared by the lab test endpoints."""

    success: bool = False
    error: str


class CartItem(BaseModel):
    """A concept selected into the code set cart."""

    hierarchy_concept_id: int
    concept_name: str
    vocabulary_id: str
    concept_class_id: str
    root_term: str
    domain_id: str = MEASUREMENT_DOMAIN_ID

    @classmethod
    def from_result(cls, result: LabTestSearchResult) -> "CartItem":
        """Build a cart item from a search result row."""
        return cls(
            hierarchy_concept_id=result.term_concept,
            concept_name=result.search_result,
            vocabulary_id=result.vocabulary_id,
            concept_class_id=result.searched_concept_class_id,
            root_term=result.search_result,
        )
