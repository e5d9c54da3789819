"""HTML rendering of the documentation view."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape
from markupsafe import Markup, escape

from ovirt_api_model.application.services.documentation_service import DocumentationView
from ovirt_api_model.domain.base.exceptions import InfrastructureError
from ovirt_api_model.domain.doc_text import split_inline_code
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
TEMPLATE_NAME = "model.html.j2"


def inline_markup(text: str) -> Markup:
    """Escape text and turn backtick spans into ``<code>`` elements."""
    parts = []
    for fragment, is_code in split_inline_code(text or ""):
        if is_code:
            parts.append(Markup("<code>{}</code>").format(fragment))
        else:
            parts.append(escape(fragment))
    return Markup("").join(parts)


def _get_env() -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["inline"] = inline_markup
    return env


class HtmlRenderer:
    """Renders a single self-contained HTML reference page."""

    def __init__(self) -> None:
        self._env = _get_env()

    def render(self, view: DocumentationView) -> str:
        template = self._env.get_template(TEMPLATE_NAME)
        return template.render(view=view)

    def write(self, view: DocumentationView, path: Union[str, Path]) -> Path:
        """
        Render the view and write it to ``path``.

        :raises InfrastructureError: If the file cannot be written.
        """
        path = Path(path)
        html = self.render(view)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(html, encoding="utf-8")
        except OSError as e:
            raise InfrastructureError(f"Cannot write {path}: {e}", {"file": str(path)}) from e
        logger.info(f"Documentation written to {path}")
        return path
