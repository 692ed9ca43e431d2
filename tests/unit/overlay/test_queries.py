"""Unit tests for openadr_overlay.overlay.queries module."""

import pytest

from openadr_overlay.core.errors import UnsupportedQueryError
from openadr_overlay.overlay.queries import LOOKUP_SERVICE, LookupQuery, LookupQuestion


class TestLookupQuestion:
    """Test question parsing and wire form."""

    def test_parse_wire_aliases(self) -> None:
        question = LookupQuestion.parse(
            {
                "service": "ls_openADR",
                "query": {"active": True, "programID": "p1", "eventType": "SIMPLE"},
            }
        )
        assert question.query == LookupQuery(active=True, program_id="p1", event_type="SIMPLE")

    def test_unknown_query_keys_are_ignored(self) -> None:
        question = LookupQuestion.parse({"service": "ls_openADR", "query": {"limit": 5}})
        assert question.query.to_dict() == {}

    def test_builders(self) -> None:
        assert LookupQuestion.find_all().to_dict() == {
            "service": LOOKUP_SERVICE,
            "query": {"findAll": True},
        }
        assert LookupQuestion.active_events(program_id="p1").to_dict() == {
            "service": LOOKUP_SERVICE,
            "query": {"active": True, "programID": "p1"},
        }

    def test_active_presence_is_tracked(self) -> None:
        explicit_null = LookupQuestion.parse({"service": "ls_openADR", "query": {"active": None}})
        absent = LookupQuestion.parse({"service": "ls_openADR", "query": {"programID": "p1"}})

        assert explicit_null.query.wants_active
        assert explicit_null.query.to_dict() == {"active": None}
        assert not absent.query.wants_active

    def test_parse_passes_instances_through(self) -> None:
        question = LookupQuestion.find_all()
        assert LookupQuestion.parse(question) is question

    @pytest.mark.parametrize("raw", [None, "findAll", {"service": "ls_openADR"}, {"query": 3}])
    def test_malformed_questions_raise(self, raw) -> None:
        with pytest.raises(UnsupportedQueryError, match="Malformed"):
            LookupQuestion.parse(raw)
