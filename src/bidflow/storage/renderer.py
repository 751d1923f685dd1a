"""HTML renderer for document versions."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, select_autoescape

if TYPE_CHECKING:
    from bidflow.models.document import Document, VersionRecord

DOCUMENT_TEMPLATES = Path(__file__).resolve().parent.parent / "templates"


def _paragraphs(text: str) -> list[str]:
    return [block.strip() for block in text.split("\n\n") if block.strip()]


class DocumentRenderer:
    """Renders a version's content snapshot to a standalone HTML page."""

    def __init__(self, templates_dir: Path = DOCUMENT_TEMPLATES) -> None:
        self._env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html"]),
        )
        self._env.filters["paragraphs"] = _paragraphs

    def render(self, document: Document, version: VersionRecord) -> str:
        template = self._env.get_template("document.html")
        return template.render(document=document, version=version, content=version.content)
