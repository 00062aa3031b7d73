"""SQL composition for the lab test search.

Builds one SQLAlchemy Core statement out of independently testable stages:

1. base scope: Measurement concepts from the allow-listed vocabulary/class
   combinations, optionally filtered by a search term
2. attribute lookups: one per LOINC axis (property, scale, system, time),
   resolved through ConceptRelationship to valid target concepts
3. lab tests: base scope + the four lookups, tagged "Lab Test", capped
4. panels: LOINC concepts containing any capped lab test, tagged "Panel"
5. union of 3 and 4 ordered by vocabulary_id, concept id

The search term is only ever passed as the bound parameter ``searchterm``.
"""

import logging

from sqlalchemy import (
    CTE,
    ColumnElement,
    Select,
    String,
    Table,
    and_,
    bindparam,
    cast,
    func,
    literal,
    null,
    or_,
    select,
    union_all,
)

from codeset_builder.models.vocabulary import Concept, ConceptRelationship
from codeset_builder.schemas.base import (
    ATTRIBUTE_RELATIONSHIPS,
    MEASUREMENT_DOMAIN_ID,
    LabTestCategory,
    RelationshipKind,
    Vocabulary,
)

logger = logging.getLogger(__name__)

LIKE_ESCAPE_CHAR = "/"

# Columns of every result row, in union order
RESULT_COLUMNS = (
    "lab_test_type",
    "term_concept",
    "search_result",
    "searched_code",
    "searched_concept_class_id",
    "vocabulary_id",
    *ATTRIBUTE_RELATIONSHIPS.keys(),
)

concept_table: Table = Concept.__table__
relationship_table: Table = ConceptRelationship.__table__


def escape_like(value: str, escape_char: str = LIKE_ESCAPE_CHAR) -> str:
    """Escape LIKE wildcards so they match literally."""
    return (
        value.replace(escape_char, escape_char * 2)
        .replace("%", f"{escape_char}%")
        .replace("_", f"{escape_char}_")
    )


def is_active(table) -> ColumnElement[bool]:
    """Concept not invalidated (invalid_reason NULL or empty)."""
    return or_(table.c.invalid_reason.is_(None), table.c.invalid_reason == "")


def build_scope_filter(table=concept_table) -> ColumnElement[bool]:
    """Domain and vocabulary/class allow-list for lab test candidates.

    Allowed combinations:
        LOINC with class "Lab Test", CPT4 (any class),
        SNOMED (any class), HCPCS with class "HCPCS"
    """
    vocabulary_id = table.c.vocabulary_id
    concept_class_id = table.c.concept_class_id
    return and_(
        table.c.domain_id == MEASUREMENT_DOMAIN_ID,
        vocabulary_id.in_([v.value for v in Vocabulary]),
        or_(
            and_(vocabulary_id == Vocabulary.LOINC.value, concept_class_id == "Lab Test"),
            vocabulary_id == Vocabulary.CPT4.value,
            vocabulary_id == Vocabulary.SNOMED.value,
            and_(vocabulary_id == Vocabulary.HCPCS.value, concept_class_id == "HCPCS"),
        ),
    )


def search_text(table=concept_table) -> ColumnElement[str]:
    """Normalized searchable text: UPPER(concept_id || ' ' || code || ' ' || name)."""
    return func.upper(
        cast(table.c.concept_id, String(30))
        + " "
        + table.c.concept_code
        + " "
        + table.c.concept_name
    )


def build_term_filter(
    term: str,
    escape_wildcards: bool = True,
    table=concept_table,
) -> ColumnElement[bool] | None:
    """Case-insensitive substring predicate for the search term.

    Returns None for a blank term, meaning no text filter. The term is
    upper-cased by the database's UPPER, the same function applied to the
    searched text, so both sides fold case identically.
    """
    normalized = (term or "").strip()
    if not normalized:
        return None

    if escape_wildcards:
        pattern = func.upper(bindparam("searchterm", f"%{escape_like(normalized)}%", type_=String))
        return search_text(table).like(pattern, escape=LIKE_ESCAPE_CHAR)
    pattern = func.upper(bindparam("searchterm", f"%{normalized}%", type_=String))
    return search_text(table).like(pattern)


def build_base_scope(term: str = "", escape_wildcards: bool = True) -> CTE:
    """Scoped candidate concepts (CTE ``base``)."""
    stmt = select(
        concept_table.c.concept_id,
        concept_table.c.concept_name,
        concept_table.c.concept_code,
        concept_table.c.concept_class_id,
        concept_table.c.vocabulary_id,
    ).where(build_scope_filter())

    term_filter = build_term_filter(term, escape_wildcards)
    if term_filter is not None:
        stmt = stmt.where(term_filter)

    return stmt.cte("base")


def build_attribute_lookup(attribute: str, kind: RelationshipKind) -> CTE:
    """One resolved attribute value per source concept (CTE ``<attribute>_lookup``).

    Only targets that are not invalidated count. When a concept has several
    edges of the same kind the alphabetically first target name wins, so the
    lookup never fans out the lab test rows.
    """
    edge = relationship_table.alias(f"{attribute}_edge")
    target = concept_table.alias(f"{attribute}_concept")
    return (
        select(
            edge.c.concept_id_1.label("concept_id"),
            func.min(target.c.concept_name).label(attribute),
        )
        .select_from(edge.join(target, target.c.concept_id == edge.c.concept_id_2))
        .where(edge.c.relationship_id == kind.value, is_active(target))
        .group_by(edge.c.concept_id_1)
        .cte(f"{attribute}_lookup")
    )


def build_lab_tests(base: CTE, limit: int | None = 1000) -> CTE:
    """Base concepts with their four attributes, tagged "Lab Test" (CTE ``term``).

    Rows are ordered by (vocabulary_id, concept_id) before the cap is applied,
    so the surviving rows are the first ``limit`` of the final order.
    """
    lookups = {
        attribute: build_attribute_lookup(attribute, kind)
        for attribute, kind in ATTRIBUTE_RELATIONSHIPS.items()
    }

    joined = base
    for lookup in lookups.values():
        joined = joined.outerjoin(lookup, lookup.c.concept_id == base.c.concept_id)

    stmt = (
        select(
            literal(LabTestCategory.LAB_TEST.value, String).label("lab_test_type"),
            base.c.concept_id.label("term_concept"),
            base.c.concept_name.label("search_result"),
            base.c.concept_code.label("searched_code"),
            base.c.concept_class_id.label("searched_concept_class_id"),
            base.c.vocabulary_id.label("vocabulary_id"),
            *(lookup.c[attribute] for attribute, lookup in lookups.items()),
        )
        .select_from(joined)
        .order_by(base.c.vocabulary_id, base.c.concept_id)
    )
    if limit is not None:
        stmt = stmt.limit(limit)

    return stmt.cte("term")


def build_panels(lab_tests: CTE) -> Select:
    """LOINC panels containing at least one of the given lab tests.

    Attribute columns are NULL; one row per panel concept.
    """
    panel = concept_table.alias("panel_concept")
    membership = relationship_table.alias("panel_edge")

    member_panel_ids = select(membership.c.concept_id_2).where(
        membership.c.relationship_id == RelationshipKind.CONTAINED_IN_PANEL.value,
        membership.c.concept_id_1.in_(select(lab_tests.c.term_concept)),
    )

    return (
        select(
            literal(LabTestCategory.PANEL.value, String).label("lab_test_type"),
            panel.c.concept_id.label("term_concept"),
            panel.c.concept_name.label("search_result"),
            panel.c.concept_code.label("searched_code"),
            panel.c.concept_class_id.label("searched_concept_class_id"),
            panel.c.vocabulary_id.label("vocabulary_id"),
            *(cast(null(), String(500)).label(attribute) for attribute in ATTRIBUTE_RELATIONSHIPS),
        )
        .where(
            panel.c.vocabulary_id == Vocabulary.LOINC.value,
            panel.c.concept_id.in_(member_panel_ids),
        )
        .group_by(
            panel.c.concept_id,
            panel.c.concept_name,
            panel.c.concept_code,
            panel.c.concept_class_id,
            panel.c.vocabulary_id,
        )
    )


def build_labtest_search_query(
    term: str = "",
    limit: int | None = 1000,
    escape_wildcards: bool = True,
) -> Select:
    """Compose the complete lab test search statement.

    Args:
        term: Search text; blank means no text filter.
        limit: Cap on "Lab Test" rows (panels are not capped). None disables it.
        escape_wildcards: Match % and _ in the term literally.

    Returns:
        A SELECT over the union of lab test and panel rows, columns as in
        RESULT_COLUMNS, ordered by vocabulary_id, term_concept, lab_test_type.
    """
    base = build_base_scope(term, escape_wildcards)
    lab_tests = build_lab_tests(base, limit)

    combined = union_all(select(lab_tests), build_panels(lab_tests)).subquery("results")
    return select(combined).order_by(
        combined.c.vocabulary_id,
        combined.c.term_concept,
        combined.c.lab_test_type,
    )
