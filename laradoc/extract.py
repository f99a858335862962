"""Pattern-based fact extraction for model and controller source units.

This is deliberately not a PHP parser. Each fact type is recognized by a
structural pattern; a unit that matches nothing simply yields no facts.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

import structlog

from .canonical import canonical_name
from .model import Action, Attribute, ControllerEntity, Fact, ModelEntity, Relationship, SourceUnit, RELATIONSHIP_KINDS

logger = structlog.get_logger(__name__)


CAST_TYPES: Dict[str, str] = {
	"integer": "int",
	"int": "int",
	"float": "float",
	"double": "float",
	"decimal": "float",
	"string": "string",
	"boolean": "boolean",
	"bool": "boolean",
	"object": "json",
	"array": "json",
	"json": "json",
	"date": "datetime",
	"datetime": "datetime",
	"timestamp": "datetime",
	"uuid": "string",
}

_NAMESPACE = re.compile(r"^\s*namespace\s+([^;{\s]+)\s*[;{]", re.MULTILINE)
_CLASS = re.compile(r"^\s*(?:(?:abstract|final|readonly)\s+)*class\s+(\w+)", re.MULTILINE)
_TABLE = re.compile(r"protected\s+\$table\s*=\s*['\"]([^'\"]+)['\"]")
_PRIMARY_KEY = re.compile(r"protected\s+\$primaryKey\s*=\s*['\"]([^'\"]+)['\"]")
_TIMESTAMPS_OFF = re.compile(r"public\s+\$timestamps\s*=\s*false", re.IGNORECASE)
_SOFT_DELETES = re.compile(r"\buse\s+[^;]*\bSoftDeletes\b")
_FILLABLE = re.compile(r"protected\s+\$fillable\s*=\s*(\[|array\s*\()")
_CASTS_PROPERTY = re.compile(r"protected\s+\$casts\s*=\s*(\[|array\s*\()")
_CASTS_METHOD = re.compile(r"function\s+casts\s*\(\s*\)[^{;]*\{[^\[]*?return\s*(\[)")
_QUOTED = re.compile(r"['\"]([^'\"]+)['\"]")
_CAST_ENTRY = re.compile(r"['\"]([^'\"]+)['\"]\s*=>\s*['\"]([^'\"]+)['\"]")
_FUNCTION = re.compile(
	r"(?P<mods>(?:\b(?:public|protected|private|static|final|abstract)\s+)*)\bfunction\s+&?(?P<name>\w+)\s*\("
)
_RELATION_CALL = re.compile(
	r"\$this\s*->\s*(" + "|".join(RELATIONSHIP_KINDS) + r")\s*\("
)
_ID_LITERAL = re.compile(r"['\"](\w+)_id['\"]")

_PAIRS = {"(": ")", "[": "]", "{": "}"}


def _skip_string(text: str, i: int) -> int:
	quote = text[i]
	i += 1
	while i < len(text):
		ch = text[i]
		if ch == "\\":
			i += 2
			continue
		if ch == quote:
			return i + 1
		i += 1
	return i


def _skip_comment(text: str, i: int) -> int:
	if text.startswith("//", i) or (text.startswith("#", i) and not text.startswith("#[", i)):
		end = text.find("\n", i)
		return len(text) if end == -1 else end
	if text.startswith("/*", i):
		end = text.find("*/", i + 2)
		return len(text) if end == -1 else end + 2
	return i


def find_closing(text: str, open_index: int) -> int:
	"""Index of the bracket closing the one at ``open_index``, or -1.

	Quoted strings and comments are skipped so braces inside them do not count.
	"""
	stack: List[str] = []
	i = open_index
	while i < len(text):
		ch = text[i]
		if ch in ("'", '"'):
			i = _skip_string(text, i)
			continue
		if ch in ("/", "#"):
			nxt = _skip_comment(text, i)
			if nxt != i:
				i = nxt
				continue
		if ch in _PAIRS:
			stack.append(_PAIRS[ch])
		elif stack and ch == stack[-1]:
			stack.pop()
			if not stack:
				return i
		i += 1
	return -1


def split_top_level(text: str, sep: str = ",") -> List[str]:
	"""Split on ``sep`` outside of brackets and quotes; empty pieces dropped."""
	parts: List[str] = []
	depth = 0
	start = 0
	i = 0
	while i < len(text):
		ch = text[i]
		if ch in ("'", '"'):
			i = _skip_string(text, i)
			continue
		if ch in "([{":
			depth += 1
		elif ch in ")]}":
			depth -= 1
		elif ch == sep and depth == 0:
			parts.append(text[start:i])
			start = i + 1
		i += 1
	parts.append(text[start:])
	return [p.strip() for p in parts if p.strip()]


def _bracket_contents(text: str, match: Optional[re.Match]) -> Optional[str]:
	if match is None:
		return None
	open_index = match.end() - 1
	close = find_closing(text, open_index)
	if close == -1:
		return text[open_index + 1:]
	return text[open_index + 1:close]


def map_cast_type(keyword: str) -> str:
	base = keyword.split(":", 1)[0].strip().lower()
	return CAST_TYPES.get(base, "string")


def infer_attribute_type(name: str) -> str:
	if name == "id" or name.endswith("_id"):
		return "int"
	if "email" in name or "password" in name or "uuid" in name:
		return "string"
	if "date" in name or "time" in name:
		return "datetime"
	if name.startswith("is_") or name.startswith("has_"):
		return "boolean"
	if any(word in name for word in ("count", "amount", "price", "total")):
		return "float"
	return "string"


def extract_namespace(text: str) -> str:
	m = _NAMESPACE.search(text)
	return m.group(1) if m else ""


def extract_class_name(text: str) -> Optional[str]:
	m = _CLASS.search(text)
	return m.group(1) if m else None


def extract_table_name(text: str) -> Optional[str]:
	m = _TABLE.search(text)
	return m.group(1) if m else None


def extract_primary_key(text: str) -> Optional[str]:
	m = _PRIMARY_KEY.search(text)
	return m.group(1) if m else None


def uses_timestamps(text: str) -> bool:
	return _TIMESTAMPS_OFF.search(text) is None


def uses_soft_deletes(text: str) -> bool:
	return _SOFT_DELETES.search(text) is not None


def extract_fillable(text: str) -> List[str]:
	body = _bracket_contents(text, _FILLABLE.search(text))
	if body is None:
		return []
	return _QUOTED.findall(body)


def extract_casts(text: str) -> Dict[str, str]:
	"""Field -> raw cast keyword, from the ``$casts`` property and ``casts()`` method."""
	casts: Dict[str, str] = {}
	for pattern in (_CASTS_PROPERTY, _CASTS_METHOD):
		body = _bracket_contents(text, pattern.search(text))
		if body is None:
			continue
		for field, keyword in _CAST_ENTRY.findall(body):
			casts[field] = keyword
	return casts


def _new_attribute(name: str, type_: str, source: str) -> dict:
	is_fk = name.endswith("_id")
	return {
		"name": name,
		"type": type_,
		"is_primary_key": name == "id",
		"is_foreign_key": is_fk,
		"references": name[: -len("_id")] if is_fk else None,
		"sources": [source],
	}


def _freeze(drafts: Dict[str, dict]) -> List[Attribute]:
	return [Attribute(**d) for d in drafts.values()]


def extract_attributes(text: str) -> List[Attribute]:
	drafts: Dict[str, dict] = {}

	for name in extract_fillable(text):
		if name not in drafts:
			drafts[name] = _new_attribute(name, infer_attribute_type(name), "fillable")

	for name, keyword in extract_casts(text).items():
		mapped = map_cast_type(keyword)
		if name in drafts:
			drafts[name]["type"] = mapped
			drafts[name]["sources"].append("cast")
		else:
			drafts[name] = _new_attribute(name, mapped, "cast")

	pk = extract_primary_key(text)
	if pk:
		if pk in drafts:
			drafts[pk]["is_primary_key"] = True
			drafts[pk]["sources"].append("primary_key")
		else:
			draft = _new_attribute(pk, "int", "primary_key")
			draft.update(is_primary_key=True, is_foreign_key=False, references=None)
			drafts[pk] = draft
		if pk != "id" and "id" in drafts:
			drafts["id"]["is_primary_key"] = False

	return _freeze(drafts)


def extract_actions(text: str) -> List[Action]:
	"""Every named function with a body, in declaration order; nested bodies are not rescanned."""
	actions: List[Action] = []
	pos = 0
	while True:
		m = _FUNCTION.search(text, pos)
		if m is None:
			break
		params_open = m.end() - 1
		params_close = find_closing(text, params_open)
		if params_close == -1:
			break
		params = text[params_open + 1:params_close]
		i = params_close + 1
		while i < len(text) and text[i] not in "{;":
			i += 1
		if i >= len(text) or text[i] == ";":
			pos = i + 1
			continue
		body_close = find_closing(text, i)
		if body_close == -1:
			body_close = len(text)
		mods = m.group("mods")
		if "private" in mods:
			visibility = "private"
		elif "protected" in mods:
			visibility = "protected"
		else:
			visibility = "public"
		actions.append(
			Action(
				name=m.group("name"),
				params=" ".join(params.split()),
				body=text[i + 1:body_close],
				visibility=visibility,
			)
		)
		pos = body_close + 1
	return actions


def relationship_call(body: str) -> Optional[Tuple[str, List[str]]]:
	"""First relation-builder call in an action body: (kind, raw arguments)."""
	m = _RELATION_CALL.search(body)
	if m is None:
		return None
	close = find_closing(body, m.end() - 1)
	args = body[m.end():close] if close != -1 else body[m.end():]
	return m.group(1), split_top_level(args)


def is_relationship_accessor(action: Action) -> bool:
	return relationship_call(action.body) is not None


def extract_relationships(model_name: str, actions: List[Action]) -> List[Relationship]:
	relationships: List[Relationship] = []
	for action in actions:
		found = relationship_call(action.body)
		if found is None:
			continue
		kind, args = found
		target = None
		if kind != "morphTo" and args:
			target = args[0].strip() or None
		foreign_key = None
		if kind == "belongsTo" and len(args) > 1:
			fk = _QUOTED.fullmatch(args[1].strip())
			foreign_key = fk.group(1) if fk else None
		relationships.append(
			Relationship(
				source_model=model_name,
				kind=kind,
				name=action.name,
				target_model=target,
				foreign_key=foreign_key,
			)
		)
	return relationships


class ForeignKey(Fact):
	name: str
	references: str
	from_relationship: bool = False


def extract_foreign_keys(text: str, relationships: List[Relationship]) -> List[ForeignKey]:
	keys: Dict[str, ForeignKey] = {}
	for rel in relationships:
		if rel.kind != "belongsTo" or not rel.target_model:
			continue
		target = canonical_name(rel.target_model)
		name = rel.foreign_key or f"{target}_id"
		keys[name] = ForeignKey(name=name, references=target, from_relationship=True)
	for word in _ID_LITERAL.findall(text):
		name = f"{word}_id"
		if name not in keys:
			keys[name] = ForeignKey(name=name, references=word)
	return list(keys.values())


def merge_foreign_keys(attributes: List[Attribute], foreign_keys: List[ForeignKey]) -> List[Attribute]:
	drafts: Dict[str, dict] = {a.name: a.model_dump() for a in attributes}
	for fk in foreign_keys:
		draft = drafts.get(fk.name)
		if draft is None:
			drafts[fk.name] = {
				"name": fk.name,
				"type": "int",
				"is_primary_key": False,
				"is_foreign_key": True,
				"references": fk.references,
				"sources": ["foreign_key"],
			}
			continue
		draft["is_foreign_key"] = True
		draft["references"] = fk.references
		if "foreign_key" not in draft["sources"]:
			draft["sources"].append("foreign_key")
	return _freeze(drafts)


def extract_model(unit: SourceUnit) -> Tuple[ModelEntity, List[Relationship]]:
	text = unit.content
	name = extract_class_name(text) or unit.name
	actions = extract_actions(text)
	relationships = extract_relationships(name, actions)
	attributes = merge_foreign_keys(
		extract_attributes(text), extract_foreign_keys(text, relationships)
	)
	entity = ModelEntity(
		name=name,
		path=unit.path,
		namespace=extract_namespace(text),
		table_name=extract_table_name(text),
		primary_key=extract_primary_key(text) or "id",
		attributes=attributes,
		actions=actions,
		uses_timestamps=uses_timestamps(text),
		uses_soft_deletes=uses_soft_deletes(text),
	)
	logger.debug(
		"extracted model",
		model=name,
		attributes=len(attributes),
		relationships=len(relationships),
	)
	return entity, relationships


def extract_controller(unit: SourceUnit) -> ControllerEntity:
	text = unit.content
	entity = ControllerEntity(
		name=extract_class_name(text) or unit.name,
		path=unit.path,
		namespace=extract_namespace(text),
		actions=extract_actions(text),
	)
	logger.debug("extracted controller", controller=entity.name, actions=len(entity.actions))
	return entity
