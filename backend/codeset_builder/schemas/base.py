"""Base schemas and enums for the Lab Code Set Builder."""

from enum import Enum


class LabTestCategory(str, Enum):
    """Category tag carried by every search result row."""

    LAB_TEST = "Lab Test"
    PANEL = "Panel"


class Vocabulary(str, Enum):
    """Vocabularies searched for lab tests."""

    LOINC = "LOINC"
    CPT4 = "CPT4"
    HCPCS = "HCPCS"
    SNOMED = "SNOMED"


class RelationshipKind(str, Enum):
    """OMOP relationship_id values used by the lab test search."""

    HAS_PROPERTY = "Has property"
    HAS_SCALE_TYPE = "Has scale type"
    HAS_SYSTEM = "Has system"
    HAS_TIME_ASPECT = "Has time aspect"
    CONTAINED_IN_PANEL = "Contained in panel"


# Result attribute name -> relationship resolving it
ATTRIBUTE_RELATIONSHIPS: dict[str, RelationshipKind] = {
    "property": RelationshipKind.HAS_PROPERTY,
    "scale": RelationshipKind.HAS_SCALE_TYPE,
    "system": RelationshipKind.HAS_SYSTEM,
    "time": RelationshipKind.HAS_TIME_ASPECT,
}

MEASUREMENT_DOMAIN_ID = "Measurement"
