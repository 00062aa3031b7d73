"""SQLAlchemy ORM models for the Lab Code Set Builder.

All models inherit from Base which provides:
- id: UUID primary key
- created_at: Timestamp

Models:
- Concept, ConceptRelationship (OMOP vocabulary, read-only)
"""

from codeset_builder.core.database import Base
from codeset_builder.models.vocabulary import Concept, ConceptRelationship

__all__ = [
    "Base",
    "Concept",
    "ConceptRelationship",
]
