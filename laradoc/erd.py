from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from .canonical import NameResolver, canonical_name
from .model import Attribute, ModelEntity, ProjectInfo, Relationship


# kind -> (cardinality symbol, label)
CARDINALITY: Dict[str, Tuple[str, str]] = {
	"hasOne": ("||--o|", "1 to 1"),
	"hasMany": ("||--|{", "1 to many"),
	"belongsTo": ("}|--||", "belongs to"),
	"belongsToMany": ("}|--|{", "many to many"),
	"morphTo": ("}o--|{", "polymorphic"),
	"morphOne": ("||--o|", "morph one"),
	"morphMany": ("||--o{", "morph many"),
	"hasOneThrough": ("||..o|", "one through"),
	"hasManyThrough": ("||..o{", "many through"),
}
DEFAULT_CARDINALITY = ("||--o|", "relates to")

TIMESTAMP_COLUMNS = ("created_at", "updated_at")
SOFT_DELETE_COLUMN = "deleted_at"


def cardinality(kind: str) -> Tuple[str, str]:
	return CARDINALITY.get(kind, DEFAULT_CARDINALITY)


def column_line(attr: Attribute) -> str:
	if attr.is_primary_key:
		return f'{attr.type} {attr.name} PK "Primary key"'
	if attr.is_foreign_key:
		return f'{attr.type} {attr.name} FK "References {attr.references}"'
	return f"{attr.type} {attr.name}"


def entity_columns(model: ModelEntity) -> List[str]:
	"""Primary key first, then declared attributes, then the implicit date columns."""
	ordered = [a for a in model.attributes if a.is_primary_key]
	ordered += [a for a in model.attributes if not a.is_primary_key]
	lines = [column_line(a) for a in ordered]
	names = {a.name for a in model.attributes}
	if model.uses_timestamps:
		lines += [f"datetime {col}" for col in TIMESTAMP_COLUMNS if col not in names]
	if model.uses_soft_deletes and SOFT_DELETE_COLUMN not in names:
		lines.append(f"datetime {SOFT_DELETE_COLUMN}")
	return lines


def relation_line(rel: Relationship, resolver: NameResolver[ModelEntity]) -> Optional[str]:
	if not (resolver.is_known(rel.source_model) and resolver.is_known(rel.target_model)):
		return None
	symbol, _ = cardinality(rel.kind)
	source = resolver.key(rel.source_model)
	target = resolver.key(rel.target_model)
	return f'{source} {symbol} {target} : "{rel.name}"'


def synthesize_erd(project: ProjectInfo, resolver: Optional[NameResolver[ModelEntity]] = None) -> str:
	resolver = resolver or NameResolver(project.models)
	out: List[str] = ["erDiagram"]
	emitted = set()
	for model in project.models:
		key = canonical_name(model.name)
		if key in emitted:
			continue
		emitted.add(key)
		out.append(f"  {key} {{")
		out.extend(f"    {line}" for line in entity_columns(model))
		out.append("  }")
	for rel in project.relationships:
		line = relation_line(rel, resolver)
		if line is not None:
			out.append(f"  {line}")
	return "\n".join(out) + "\n"
