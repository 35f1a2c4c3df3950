"""Snippet export (json / markdown / txt) and import payload parsing."""

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

from app.database import utcnow
from app.models.snippet import Snippet

ExportFormat = Literal["json", "markdown", "txt"]

MEDIA_TYPES: dict[str, str] = {
    "json": "application/json",
    "markdown": "text/markdown",
    "txt": "text/plain",
}

FILE_EXTENSIONS: dict[str, str] = {"json": "json", "markdown": "md", "txt": "txt"}

REQUIRED_IMPORT_FIELDS = ("title", "code", "language")

# Fields dropped from JSON exports unless metadata is requested
_METADATA_FIELDS = ("id", "created_at", "updated_at", "user_id")


@dataclass
class ImportedSnippet:
    """One validated entry of an import payload."""

    title: str
    code: str
    language: str
    tags: list[str]
    description: str | None = None


def snippet_to_dict(snippet: Snippet) -> dict[str, Any]:
    return {
        "id": str(snippet.id),
        "user_id": snippet.user_id,
        "project_id": str(snippet.project_id) if snippet.project_id else None,
        "title": snippet.title,
        "code": snippet.code,
        "language": snippet.language,
        "tags": list(snippet.tags or []),
        "description": snippet.description,
        "is_public": snippet.is_public,
        "created_at": snippet.created_at.isoformat() if snippet.created_at else None,
        "updated_at": snippet.updated_at.isoformat() if snippet.updated_at else None,
    }


def _group_by_language(snippets: Iterable[Snippet]) -> dict[str, list[Snippet]]:
    groups: dict[str, list[Snippet]] = {}
    for snippet in snippets:
        groups.setdefault(snippet.language, []).append(snippet)
    return groups


def _export_json(snippets: list[Snippet], include_metadata: bool) -> str:
    items = []
    for snippet in snippets:
        data = snippet_to_dict(snippet)
        if not include_metadata:
            for key in _METADATA_FIELDS:
                data.pop(key, None)
        items.append(data)
    return json.dumps(
        {"exportedAt": utcnow().isoformat() + "Z", "count": len(snippets), "snippets": items},
        indent=2,
    )


def _markdown_entry(snippet: Snippet, include_metadata: bool) -> str:
    out = f"### {snippet.title}\n\n"
    if include_metadata:
        out += f"**Language:** {snippet.language}\n"
        if snippet.tags:
            out += f"**Tags:** {', '.join(snippet.tags)}\n"
        out += f"**Created:** {snippet.created_at.date().isoformat()}\n\n"
    out += f"```{snippet.language}\n{snippet.code}\n```\n\n"
    out += "---\n\n"
    return out


def _text_entry(snippet: Snippet, include_metadata: bool) -> str:
    out = f"Title: {snippet.title}\n"
    if include_metadata:
        out += f"Language: {snippet.language}\n"
        if snippet.tags:
            out += f"Tags: {', '.join(snippet.tags)}\n"
        out += f"Created: {snippet.created_at.date().isoformat()}\n"
    rule = "-" * 40
    out += f"\nCode:\n{rule}\n{snippet.code}\n{rule}\n\n"
    return out


def _export_markdown(snippets: list[Snippet], include_metadata: bool, group_by_language: bool) -> str:
    out = "# Code Snippets Export\n\n"
    out += f"Exported: {utcnow().date().isoformat()}\n"
    out += f"Total Snippets: {len(snippets)}\n\n"
    if group_by_language:
        for language, group in _group_by_language(snippets).items():
            out += f"## {language.upper()} ({len(group)} snippets)\n\n"
            out += "".join(_markdown_entry(s, include_metadata) for s in group)
    else:
        out += "".join(_markdown_entry(s, include_metadata) for s in snippets)
    return out


def _export_text(snippets: list[Snippet], include_metadata: bool, group_by_language: bool) -> str:
    out = "Code Snippets Export\n"
    out += "=====================\n\n"
    out += f"Exported: {utcnow().date().isoformat()}\n"
    out += f"Total Snippets: {len(snippets)}\n\n"
    if group_by_language:
        for language, group in _group_by_language(snippets).items():
            out += f"{language.upper()} ({len(group)} snippets)\n"
            out += "=" * (len(language) + 20) + "\n\n"
            out += "".join(_text_entry(s, include_metadata) for s in group)
    else:
        out += "".join(_text_entry(s, include_metadata) for s in snippets)
    return out


def export_snippets(
    snippets: list[Snippet],
    fmt: ExportFormat = "json",
    include_metadata: bool = False,
    group_by_language: bool = False,
) -> str:
    """Render snippets in one of the export formats.

    Raises:
        ValueError: If ``fmt`` is not a supported format.
    """
    if fmt == "json":
        return _export_json(snippets, include_metadata)
    if fmt == "markdown":
        return _export_markdown(snippets, include_metadata, group_by_language)
    if fmt == "txt":
        return _export_text(snippets, include_metadata, group_by_language)
    raise ValueError(f"Unsupported export format: {fmt}")


def parse_import_payload(data: Any) -> list[ImportedSnippet]:
    """Validate an import payload: ``{"snippets": [...]}`` or a bare list.

    Raises:
        ValueError: If the shape is wrong or an entry lacks a required field.
    """
    if isinstance(data, dict) and isinstance(data.get("snippets"), list):
        entries = data["snippets"]
    elif isinstance(data, list):
        entries = data
    else:
        raise ValueError("Invalid import format: expected a list of snippets or an object with a 'snippets' list")

    parsed: list[ImportedSnippet] = []
    for index, item in enumerate(entries, start=1):
        if not isinstance(item, dict):
            raise ValueError(f"Snippet {index} is not an object")
        for field in REQUIRED_IMPORT_FIELDS:
            if not item.get(field):
                raise ValueError(f'Missing required field "{field}" in snippet {index}')
        tags = item.get("tags")
        parsed.append(
            ImportedSnippet(
                title=str(item["title"]),
                code=str(item["code"]),
                language=str(item["language"]),
                tags=[str(t) for t in tags] if isinstance(tags, list) else [],
                description=item.get("description"),
            )
        )
    return parsed
