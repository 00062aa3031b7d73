"""SQLAlchemy models for OMOP vocabulary concepts."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from codeset_builder.core.database import Base


class Concept(Base):
    """OMOP Concept table.

    A subset of the OMOP CDM CONCEPT table with the fields needed for
    lab test search. Read-only reference data for this service.

    Note: Uses UUID id from Base for internal tracking, but concept_id
    is the OMOP-standard identifier used for lookups and joins.
    """

    __tablename__ = "concepts"

    concept_id: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        unique=True,
        index=True,
    )
    concept_name: Mapped[str] = mapped_column(
        String(500),
        nullable=False,
        index=True,
    )
    domain_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    vocabulary_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    concept_class_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    concept_code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )
    standard_concept: Mapped[str | None] = mapped_column(
        String(1),
        nullable=True,
    )
    valid_start_date: Mapped[str | None] = mapped_column(
        String(8),
        nullable=True,
    )
    valid_end_date: Mapped[str | None] = mapped_column(
        String(8),
        nullable=True,
    )
    invalid_reason: Mapped[str | None] = mapped_column(
        String(1),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Concept(concept_id={self.concept_id}, name='{self.concept_name}', vocabulary='{self.vocabulary_id}')>"

    @property
    def is_valid(self) -> bool:
        """A concept is active when it carries no invalid_reason."""
        return not self.invalid_reason


class ConceptRelationship(Base):
    """OMOP Concept Relationship table.

    Directed, typed edges between concepts. The lab test search uses:
    - "Has property", "Has scale type", "Has system", "Has time aspect":
      LOINC axis attributes of a lab test
    - "Contained in panel": lab test -> panel membership
    """

    __tablename__ = "concept_relationships"

    concept_id_1: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    concept_id_2: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        index=True,
    )
    relationship_id: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        index=True,
    )
    valid_start_date: Mapped[str | None] = mapped_column(
        String(8),
        nullable=True,
    )
    valid_end_date: Mapped[str | None] = mapped_column(
        String(8),
        nullable=True,
    )
    invalid_reason: Mapped[str | None] = mapped_column(
        String(1),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<ConceptRelationship({self.concept_id_1} -{self.relationship_id}-> {self.concept_id_2})>"

    @property
    def is_valid(self) -> bool:
        """An edge is active when it carries no invalid_reason."""
        return not self.invalid_reason
