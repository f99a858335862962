"""One documentation run: extract, build the project model, synthesize, write.

Extraction gaps never fail a run. Any failure to create a directory or write
an artifact aborts the run with ``OutputWriteError``.
"""

from __future__ import annotations

import datetime as dt
import json
import os
from typing import List, Optional

import structlog
from pydantic import BaseModel

from .apidoc import ApiDocument, render_markdown, synthesize_api_doc
from .builder import build_from_scan
from .canonical import ProjectResolver
from .config import GeneratorConfig
from .erd import synthesize_erd
from .errors import OutputWriteError
from .fs_scan import scan_laravel_project
from .model import ProjectInfo
from .presentation import render_pages
from .sequence import SequenceManifest, synthesize_sequences
from .uml import UmlArtifacts, synthesize_uml

logger = structlog.get_logger(__name__)


class DocumentationSet(BaseModel):
	erd: str
	uml: UmlArtifacts
	sequences: SequenceManifest
	api: ApiDocument
	api_markdown: str


class GenerationResult(BaseModel):
	output_dir: str
	files: List[str]
	project: ProjectInfo


def synthesize_all(
	project: ProjectInfo,
	config: Optional[GeneratorConfig] = None,
	generated_at: Optional[str] = None,
) -> DocumentationSet:
	config = config or GeneratorConfig()
	generated_at = generated_at or dt.datetime.now(dt.timezone.utc).isoformat()
	resolver = ProjectResolver(project)
	api = synthesize_api_doc(project, resolver.controllers, generated_at=generated_at)
	return DocumentationSet(
		erd=synthesize_erd(project, resolver.models),
		uml=synthesize_uml(project, resolver.models),
		sequences=synthesize_sequences(project, show_notes=config.show_notes, generated_at=generated_at),
		api=api,
		api_markdown=render_markdown(api),
	)


def write_text(path: str, text: str) -> str:
	try:
		os.makedirs(os.path.dirname(path), exist_ok=True)
		with open(path, "w", encoding="utf-8") as fh:
			fh.write(text)
	except OSError as e:
		raise OutputWriteError(path, e) from e
	return path


def _json(data) -> str:
	return json.dumps(data, indent=2) + "\n"


def write_documentation(project: ProjectInfo, docs: DocumentationSet, output_dir: str) -> List[str]:
	def out(*parts: str) -> str:
		return os.path.join(output_dir, *parts)

	files: List[str] = [
		write_text(out("erd", "database_erd.md"), docs.erd),
		write_text(out("uml", "diagram_data.json"), _json(docs.uml.data.model_dump())),
		write_text(out("uml", "models_diagram.md"), docs.uml.models_diagram),
		write_text(out("uml", "full_diagram.md"), docs.uml.full_diagram),
	]
	for diagram in docs.sequences.diagrams:
		files.append(write_text(out("sequence", diagram.file_name), diagram.text))
	manifest = docs.sequences.model_dump(exclude={"diagrams": {"__all__": {"text"}}})
	files.append(write_text(out("sequence", "manifest.json"), _json(manifest)))
	files.append(write_text(out("api", "api.md"), docs.api_markdown))
	files.append(write_text(out("api", "api.json"), _json(docs.api.model_dump())))
	for rel_path, html in render_pages(project, docs).items():
		files.append(write_text(out(*rel_path.split("/")), html))
	return files


def generate_documentation(root: str, config: Optional[GeneratorConfig] = None) -> GenerationResult:
	config = config or GeneratorConfig()
	root = os.path.abspath(root)
	output_dir = config.output_dir
	if not os.path.isabs(output_dir):
		output_dir = os.path.join(root, output_dir)

	scan = scan_laravel_project(root)
	project = build_from_scan(scan)
	docs = synthesize_all(project, config)
	files = write_documentation(project, docs, output_dir)
	logger.info("documentation written", output_dir=output_dir, files=len(files))
	return GenerationResult(output_dir=output_dir, files=files, project=project)
