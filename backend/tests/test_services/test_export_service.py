"""Tests for snippet export rendering and import payload parsing."""

import json
import uuid
from datetime import datetime

import pytest

from app.models.snippet import Snippet
from app.services.export_service import export_snippets, parse_import_payload


def _snippet(title: str, language: str, code: str = "x = 1", tags: list[str] | None = None) -> Snippet:
    return Snippet(
        id=uuid.uuid4(),
        user_id="user_export",
        project_id=None,
        title=title,
        code=code,
        language=language,
        tags=tags or [],
        description=None,
        is_public=False,
        created_at=datetime(2024, 3, 1, 12, 0, 0),
        updated_at=datetime(2024, 3, 2, 12, 0, 0),
    )


@pytest.fixture
def snippets() -> list[Snippet]:
    return [
        _snippet("Debounce", "javascript", "const d = 1;", ["utils", "timing"]),
        _snippet("Read file", "python", "open('f').read()"),
        _snippet("Throttle", "javascript", "const t = 2;"),
    ]


class TestJsonExport:
    def test_without_metadata_strips_ids_and_timestamps(self, snippets):
        data = json.loads(export_snippets(snippets, "json"))
        assert data["count"] == 3
        assert data["exportedAt"].endswith("Z")
        first = data["snippets"][0]
        assert first["title"] == "Debounce"
        assert first["tags"] == ["utils", "timing"]
        for key in ("id", "created_at", "updated_at", "user_id"):
            assert key not in first

    def test_with_metadata(self, snippets):
        data = json.loads(export_snippets(snippets, "json", include_metadata=True))
        first = data["snippets"][0]
        assert first["id"] == str(snippets[0].id)
        assert first["user_id"] == "user_export"
        assert first["created_at"] == "2024-03-01T12:00:00"


class TestMarkdownExport:
    def test_flat(self, snippets):
        out = export_snippets(snippets, "markdown")
        assert out.startswith("# Code Snippets Export\n\n")
        assert "Total Snippets: 3" in out
        assert "### Debounce" in out
        assert "```python\nopen('f').read()\n```" in out
        assert "**Language:**" not in out

    def test_grouped_with_metadata(self, snippets):
        out = export_snippets(snippets, "markdown", include_metadata=True, group_by_language=True)
        assert "## JAVASCRIPT (2 snippets)" in out
        assert "## PYTHON (1 snippets)" in out
        assert "**Tags:** utils, timing" in out
        assert "**Created:** 2024-03-01" in out


class TestTextExport:
    def test_flat(self, snippets):
        out = export_snippets(snippets, "txt")
        assert out.startswith("Code Snippets Export\n=====================\n")
        assert "Title: Read file" in out
        assert "-" * 40 + "\nconst t = 2;\n" + "-" * 40 in out

    def test_grouped(self, snippets):
        out = export_snippets(snippets, "txt", group_by_language=True)
        assert "PYTHON (1 snippets)\n" + "=" * 26 in out


def test_unknown_format_raises(snippets):
    with pytest.raises(ValueError, match="Unsupported export format"):
        export_snippets(snippets, "yaml")


def test_empty_export():
    data = json.loads(export_snippets([], "json"))
    assert data["count"] == 0
    assert data["snippets"] == []


class TestParseImport:
    def test_accepts_export_document(self, snippets):
        exported = json.loads(export_snippets(snippets, "json"))
        parsed = parse_import_payload(exported)
        assert [p.title for p in parsed] == ["Debounce", "Read file", "Throttle"]
        assert parsed[0].tags == ["utils", "timing"]

    def test_accepts_bare_list(self):
        parsed = parse_import_payload([{"title": "A", "code": "a", "language": "go"}])
        assert len(parsed) == 1
        assert parsed[0].tags == []
        assert parsed[0].description is None

    def test_non_list_tags_are_dropped(self):
        parsed = parse_import_payload([{"title": "A", "code": "a", "language": "go", "tags": "x"}])
        assert parsed[0].tags == []

    def test_missing_field_names_field_and_position(self):
        payload = {"snippets": [{"title": "A", "code": "a", "language": "go"}, {"title": "B", "code": "b"}]}
        with pytest.raises(ValueError, match='Missing required field "language" in snippet 2'):
            parse_import_payload(payload)

    @pytest.mark.parametrize("payload", [{"items": []}, "text", 42, {"snippets": "nope"}])
    def test_invalid_shape(self, payload):
        with pytest.raises(ValueError, match="Invalid import format"):
            parse_import_payload(payload)

    def test_non_object_entry(self):
        with pytest.raises(ValueError, match="Snippet 1 is not an object"):
            parse_import_payload(["just a string"])
