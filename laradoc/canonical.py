"""Name canonicalization shared by the model builder and every synthesizer.

Relationship targets, route handlers and declared class names are written in
many shapes (``App\\Models\\User``, ``User::class``, ``'User'``). They all
reduce to one display name and one case-folded identity key.
"""

from __future__ import annotations

import re
from typing import Dict, Generic, Iterable, Optional, TypeVar

from .model import ControllerEntity, ModelEntity, ProjectInfo


_CLASS_SUFFIX = re.compile(r"::class\s*$")
_NAMESPACE = re.compile(r"^.*[\\/]")


def display_name(raw: Optional[str]) -> str:
	if not raw:
		return ""
	name = raw.strip().strip("'\"").strip()
	name = _CLASS_SUFFIX.sub("", name)
	name = _NAMESPACE.sub("", name)
	return name.strip("'\"").strip()


def canonical_name(raw: Optional[str]) -> str:
	return display_name(raw).lower()


E = TypeVar("E", ModelEntity, ControllerEntity)


class NameResolver(Generic[E]):
	"""Maps raw references to entities by canonical name; first declaration wins."""

	def __init__(self, entities: Iterable[E], suffix: str = "") -> None:
		self.suffix = suffix.lower()
		self._by_key: Dict[str, E] = {}
		for entity in entities:
			self._by_key.setdefault(canonical_name(entity.name), entity)

	def resolve(self, raw: Optional[str]) -> Optional[E]:
		key = canonical_name(raw)
		if not key:
			return None
		found = self._by_key.get(key)
		if found is None and self.suffix and not key.endswith(self.suffix):
			found = self._by_key.get(key + self.suffix)
		return found

	def is_known(self, raw: Optional[str]) -> bool:
		return self.resolve(raw) is not None

	def key(self, raw: Optional[str]) -> str:
		entity = self.resolve(raw)
		return canonical_name(entity.name) if entity is not None else canonical_name(raw)


class ProjectResolver:
	"""Bundles the model and controller lookups for one project."""

	def __init__(self, project: ProjectInfo) -> None:
		self.models: NameResolver[ModelEntity] = NameResolver(project.models)
		self.controllers: NameResolver[ControllerEntity] = NameResolver(
			list(project.controllers) + list(project.services), suffix="controller"
		)
