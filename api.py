from __future__ import annotations

import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel

from laradoc.builder import build_from_scan
from laradoc.fs_scan import scan_laravel_project
from laradoc.model import ProjectInfo
from laradoc.pipeline import DocumentationSet, synthesize_all


class AnalyzeRequest(BaseModel):
	root_path: str


class AnalyzeResult(BaseModel):
	project: ProjectInfo
	docs: DocumentationSet


def create_app(docs_dir: Optional[str] = None) -> FastAPI:
	app = FastAPI(title="Laravel Documentation Generator")

	@app.post("/analyze", response_model=AnalyzeResult)
	def analyze(req: AnalyzeRequest) -> AnalyzeResult:
		root = os.path.abspath(req.root_path)
		if not os.path.isdir(root):
			raise HTTPException(status_code=400, detail=f"Invalid root_path: {root}")
		project = build_from_scan(scan_laravel_project(root))
		return AnalyzeResult(project=project, docs=synthesize_all(project))

	if docs_dir:
		app.mount("/", StaticFiles(directory=docs_dir, html=True), name="docs")

	return app


app = create_app()
