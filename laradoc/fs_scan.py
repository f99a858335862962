from __future__ import annotations

import json
import os
from typing import Dict, List, Optional

import structlog

from .model import ScanResult, SourceUnit

logger = structlog.get_logger(__name__)


SOURCE_DIRS: Dict[str, str] = {
	"models": os.path.join("app", "Models"),
	"controllers": os.path.join("app", "Http", "Controllers"),
	"services": os.path.join("app", "Services"),
	"routes": "routes",
}
IGNORED_DIRS = {".git", "node_modules", "vendor", "storage", "__pycache__"}


def _read_json(path: str) -> Optional[dict]:
	try:
		with open(path, "r", encoding="utf-8") as fh:
			return json.load(fh)
	except (OSError, ValueError):
		return None


def is_laravel_project(root: str) -> bool:
	composer = _read_json(os.path.join(root, "composer.json"))
	if composer and "laravel/framework" in (composer.get("require") or {}):
		return True
	return os.path.isfile(os.path.join(root, "artisan")) and os.path.isdir(os.path.join(root, "app"))


def read_project_name(root: str) -> Optional[str]:
	composer = _read_json(os.path.join(root, "composer.json"))
	return composer.get("name") if composer else None


def read_framework_version(root: str) -> Optional[str]:
	lock = _read_json(os.path.join(root, "composer.lock"))
	if not lock:
		return None
	for package in lock.get("packages") or []:
		if package.get("name") == "laravel/framework":
			return package.get("version")
	return None


def to_unit_path(root: str, file_path: str) -> str:
	return os.path.relpath(file_path, root).replace(os.sep, "/")


def scan_sources(root: str, rel_dir: str) -> List[SourceUnit]:
	"""Every ``.php`` file below ``root/rel_dir``, in a stable order."""
	units: List[SourceUnit] = []
	base = os.path.join(root, rel_dir)
	for dirpath, dirnames, filenames in os.walk(base):
		dirnames[:] = sorted(d for d in dirnames if d not in IGNORED_DIRS)
		for filename in sorted(filenames):
			if not filename.endswith(".php"):
				continue
			path = os.path.join(dirpath, filename)
			try:
				with open(path, "r", encoding="utf-8") as fh:
					content = fh.read()
			except (OSError, UnicodeDecodeError) as e:
				logger.warning("skipping unreadable source", path=path, error=str(e))
				continue
			units.append(
				SourceUnit(
					name=os.path.splitext(filename)[0],
					path=to_unit_path(root, path),
					content=content,
				)
			)
	return units


def scan_laravel_project(root: str) -> ScanResult:
	root = os.path.abspath(root)
	result = ScanResult(
		root=root,
		name=read_project_name(root) or "Unknown Laravel Project",
		version=read_framework_version(root) or "Unknown",
		is_laravel=is_laravel_project(root),
		**{kind: scan_sources(root, rel_dir) for kind, rel_dir in SOURCE_DIRS.items()},
	)
	if not result.is_laravel:
		logger.warning("no Laravel project detected", root=root)
	logger.info("scanned project", root=root, **result.counts())
	return result
