"""HTML pages wrapping the generated artifacts. Diagrams are rendered client-side by mermaid."""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict

from jinja2 import Environment, PackageLoader, select_autoescape

from .model import ProjectInfo

if TYPE_CHECKING:
	from .pipeline import DocumentationSet


env = Environment(
	loader=PackageLoader("laradoc", "templates"),
	autoescape=select_autoescape(["html"]),
	trim_blocks=True,
	lstrip_blocks=True,
)


def render_page(template: str, **context) -> str:
	return env.get_template(template).render(**context)


def render_pages(project: ProjectInfo, docs: "DocumentationSet") -> Dict[str, str]:
	"""Relative output path -> page HTML."""
	common = {"project": project}
	return {
		"index.html": render_page("index.html", root="", **common),
		"erd/index.html": render_page("erd.html", root="../", diagram=docs.erd, **common),
		"uml/index.html": render_page("uml.html", root="../", uml=docs.uml, **common),
		"sequence/index.html": render_page("sequence.html", root="../", manifest=docs.sequences, **common),
		"api/index.html": render_page("api.html", root="../", doc=docs.api, **common),
	}
