"""Tests for the attribute edge audit."""

import logging
from unittest.mock import patch

from sqlalchemy.orm import Session

from codeset_builder.scripts import audit_attribute_edges
from codeset_builder.services.attribute_audit import (
    DuplicateAttributeEdge,
    find_duplicate_attribute_edges,
)


class TestFindDuplicateAttributeEdges:
    """Test find_duplicate_attribute_edges."""

    def test_reports_duplicates(self, seeded_session: Session) -> None:
        assert find_duplicate_attribute_edges(seeded_session) == [
            DuplicateAttributeEdge(concept_id=3000483, relationship_id="Has property", edge_count=2),
            DuplicateAttributeEdge(concept_id=3000483, relationship_id="Has system", edge_count=2),
        ]

    def test_limit(self, seeded_session: Session) -> None:
        duplicates = find_duplicate_attribute_edges(seeded_session, limit=1)
        assert [d.relationship_id for d in duplicates] == ["Has property"]

    def test_panel_edges_ignored(self, vocab_session: Session) -> None:
        from codeset_builder.models import ConceptRelationship

        vocab_session.add_all(
            [
                ConceptRelationship(concept_id_1=1, concept_id_2=2, relationship_id="Contained in panel"),
                ConceptRelationship(concept_id_1=1, concept_id_2=3, relationship_id="Contained in panel"),
            ]
        )
        vocab_session.commit()
        assert find_duplicate_attribute_edges(vocab_session) == []

    def test_warns_when_duplicates_found(self, seeded_session: Session, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            find_duplicate_attribute_edges(seeded_session)
        assert "duplicate attribute edges" in caplog.text


class TestAuditCommand:
    """Test the audit command line entry point."""

    def test_exit_code_reports_duplicates(self, seeded_session: Session, capsys) -> None:
        with (
            patch.object(audit_attribute_edges, "get_session_factory", return_value=lambda: seeded_session),
            patch.object(audit_attribute_edges, "close_engine"),
        ):
            assert audit_attribute_edges.main([]) == 1
        assert "Has property" in capsys.readouterr().out

    def test_exit_code_clean(self, vocab_session: Session, capsys) -> None:
        with (
            patch.object(audit_attribute_edges, "get_session_factory", return_value=lambda: vocab_session),
            patch.object(audit_attribute_edges, "close_engine"),
        ):
            assert audit_attribute_edges.main([]) == 0
        assert "No duplicate attribute edges found" in capsys.readouterr().out
