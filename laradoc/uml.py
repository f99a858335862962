from __future__ import annotations

import posixpath
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel

from .canonical import NameResolver, display_name
from .extract import is_relationship_accessor
from .model import Action, ControllerEntity, ModelEntity, ProjectInfo, Relationship


ENTITY_TYPES = ("models", "controllers", "services")
STEREOTYPES = {"controllers": "Controller", "services": "Service"}

ARROWS: Dict[str, str] = {
	"hasOne": "-->",
	"hasMany": "--*",
	"belongsTo": "<--",
	"belongsToMany": "<--*",
}
DEFAULT_ARROW = "-->"


class UmlProperty(BaseModel):
	name: str
	data_type: str = ""


class UmlMethod(BaseModel):
	name: str
	params: str = ""


class UmlClass(BaseModel):
	name: str
	path: str = ""
	namespace: str = ""
	table_name: Optional[str] = None
	properties: List[UmlProperty] = []
	methods: List[UmlMethod] = []


class UmlRelationship(BaseModel):
	source_model: str
	target_model: Optional[str]
	kind: str
	name: str
	resolved: bool


class UmlData(BaseModel):
	"""Machine-readable export used by the browser to re-filter diagrams."""

	models: List[UmlClass] = []
	controllers: List[UmlClass] = []
	services: List[UmlClass] = []
	relationships: List[UmlRelationship] = []
	directories: Dict[str, Dict[str, List[str]]] = {}


class UmlArtifacts(BaseModel):
	data: UmlData
	models_diagram: str
	full_diagram: str


def _methods(actions: Iterable[Action]) -> List[UmlMethod]:
	return [UmlMethod(name=a.name, params=a.params) for a in actions if a.visibility == "public"]


def model_class(model: ModelEntity) -> UmlClass:
	return UmlClass(
		name=model.name,
		path=model.path,
		namespace=model.namespace,
		table_name=model.table_name,
		properties=[
			UmlProperty(name=a.name, data_type=a.type)
			for a in model.attributes
			if not a.relationship_derived
		],
		methods=_methods(a for a in model.actions if not is_relationship_accessor(a)),
	)


def component_class(entity: ControllerEntity) -> UmlClass:
	return UmlClass(
		name=entity.name,
		path=entity.path,
		namespace=entity.namespace,
		methods=_methods(entity.actions),
	)


def directory_index(project: ProjectInfo) -> Dict[str, Dict[str, List[str]]]:
	directories: Dict[str, Dict[str, List[str]]] = {}
	groups = (
		("models", project.models),
		("controllers", project.controllers),
		("services", project.services),
	)
	for kind, entities in groups:
		for entity in entities:
			folder = posixpath.dirname(entity.path.replace("\\", "/")) or "."
			directories.setdefault(folder, {}).setdefault(kind, []).append(entity.name)
	return directories


def build_uml_data(project: ProjectInfo, resolver: Optional[NameResolver[ModelEntity]] = None) -> UmlData:
	resolver = resolver or NameResolver(project.models)
	return UmlData(
		models=[model_class(m) for m in project.models],
		controllers=[component_class(c) for c in project.controllers],
		services=[component_class(s) for s in project.services],
		relationships=[
			UmlRelationship(
				source_model=r.source_model,
				target_model=display_name(r.target_model) or None,
				kind=r.kind,
				name=r.name,
				resolved=resolver.is_known(r.source_model) and resolver.is_known(r.target_model),
			)
			for r in project.relationships
		],
		directories=directory_index(project),
	)


def _class_block(cls: UmlClass, stereotype: Optional[str]) -> List[str]:
	lines = [f"  class {cls.name} {{"]
	if stereotype:
		lines.append(f"    <<{stereotype}>>")
	elif cls.table_name:
		lines.append(f"    <<Table: {cls.table_name}>>")
	for prop in cls.properties:
		suffix = f": {prop.data_type}" if prop.data_type else ""
		lines.append(f"    +{prop.name}{suffix}")
	for method in cls.methods:
		lines.append(f"    +{method.name}({method.params})")
	lines.append("  }")
	return lines


def edge_line(rel: UmlRelationship, resolver: NameResolver[ModelEntity]) -> Optional[str]:
	source = resolver.resolve(rel.source_model)
	target = resolver.resolve(rel.target_model)
	if source is None or target is None:
		return None
	arrow = ARROWS.get(rel.kind, DEFAULT_ARROW)
	return f"{source.name} {arrow} {target.name} : {rel.name.lower()}"


def render_class_diagram(
	data: UmlData,
	resolver: NameResolver[ModelEntity],
	entity_types: Iterable[str] = ("models",),
	directory: Optional[str] = None,
) -> str:
	"""Mermaid class diagram for the selected entity kinds, optionally one directory only."""
	selected = set(entity_types)
	out = ["classDiagram"]
	for kind in ENTITY_TYPES:
		if kind not in selected:
			continue
		for cls in getattr(data, kind):
			if directory and directory not in cls.path:
				continue
			out.extend(_class_block(cls, STEREOTYPES.get(kind)))
	if "models" in selected:
		for rel in data.relationships:
			line = edge_line(rel, resolver)
			if line is not None:
				out.append(f"  {line}")
	return "\n".join(out) + "\n"


def synthesize_uml(project: ProjectInfo, resolver: Optional[NameResolver[ModelEntity]] = None) -> UmlArtifacts:
	resolver = resolver or NameResolver(project.models)
	data = build_uml_data(project, resolver)
	return UmlArtifacts(
		data=data,
		models_diagram=render_class_diagram(data, resolver, ("models",)),
		full_diagram=render_class_diagram(data, resolver, ENTITY_TYPES),
	)
