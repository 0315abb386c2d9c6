"""Unit tests for per-entity cursor extractors."""

from datetime import datetime, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from hospital_api.models.visits import Visit
from hospital_api.pagination import CURSOR_EXTRACTORS, decode_cursor, encode_cursor, get_cursor_extractor


CREATED = datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


class TestCursorExtractors:
    """Test the extractor lookup table."""

    def test_registered_kinds(self):
        assert set(CURSOR_EXTRACTORS) == {
            "id_and_created_at", "person_id", "visit", "created_at", "uploaded_at"
        }

    def test_unknown_kind(self):
        with pytest.raises(KeyError, match="appointments"):
            get_cursor_extractor("appointments")

    def test_id_and_created_at(self):
        row = {"id": 3, "created_at": CREATED, "name": "ignored"}
        assert get_cursor_extractor("id_and_created_at")(row) == {
            "id": 3, "created_at": CREATED.isoformat()
        }

    def test_person_id(self):
        row = {"person_id": 77, "first_name": "Jane"}
        assert get_cursor_extractor("person_id")(row) == {"person_id": 77}

    def test_visit(self):
        row = {"visit_occurrence_id": 12, "created_at": CREATED, "reason": "ignored"}
        assert get_cursor_extractor("visit")(row) == {
            "visit_occurrence_id": 12, "created_at": CREATED.isoformat()
        }

    def test_created_at(self):
        assert get_cursor_extractor("created_at")({"created_at": CREATED, "id": 1}) == {
            "created_at": CREATED.isoformat()
        }

    def test_uploaded_at_renders_uuid_as_string(self):
        document_id = uuid4()
        row = {"document_id": document_id, "uploaded_at": CREATED, "file_path": "x"}

        assert get_cursor_extractor("uploaded_at")(row) == {
            "uploaded_at": CREATED.isoformat(),
            "document_id": str(document_id),
        }

    def test_attribute_objects(self):
        row = SimpleNamespace(person_id=5)
        assert get_cursor_extractor("person_id")(row) == {"person_id": 5}

    def test_pydantic_models(self, sample_visit_row):
        visit = Visit.model_validate(sample_visit_row)
        assert get_cursor_extractor("visit")(visit) == {
            "visit_occurrence_id": 987,
            "created_at": sample_visit_row["created_at"].isoformat(),
        }

    def test_missing_fields_are_none(self):
        assert get_cursor_extractor("visit")({}) == {"visit_occurrence_id": None, "created_at": None}

    def test_output_encodes(self):
        row = {"document_id": uuid4(), "uploaded_at": CREATED}
        data = get_cursor_extractor("uploaded_at")(row)

        assert decode_cursor(encode_cursor(data)) == data
