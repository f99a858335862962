"""Endpoint extraction from route declaration units."""

from __future__ import annotations

import re
from typing import List, Optional, Tuple

import structlog

from .canonical import display_name
from .extract import find_closing, split_top_level
from .model import Endpoint, RouteHandler, SourceUnit

logger = structlog.get_logger(__name__)


VERBS = ("get", "post", "put", "patch", "delete", "options", "any")

# (methods, path suffix, action, description template)
RESOURCE_ROUTES: List[Tuple[List[str], str, str, str]] = [
	(["GET"], "", "index", "List all {plural}"),
	(["GET"], "/create", "create", "Show form to create a new {singular}"),
	(["POST"], "", "store", "Store a new {singular}"),
	(["GET"], "/{id}", "show", "Show a specific {singular}"),
	(["GET"], "/{id}/edit", "edit", "Show form to edit {singular}"),
	(["PUT", "PATCH"], "/{id}", "update", "Update a specific {singular}"),
	(["DELETE"], "/{id}", "destroy", "Delete a specific {singular}"),
]
FORM_ACTIONS = {"create", "edit"}

RESOURCE_GROUP = "Resource"
API_RESOURCE_GROUP = "API Resource"

_VERB_CALL = re.compile(r"Route::(" + "|".join(VERBS) + r")\s*\(")
_MATCH_CALL = re.compile(r"Route::match\s*\(")
_RESOURCE_CALL = re.compile(r"Route::(resource|apiResource)\s*\(")
_GROUP_PREFIX = re.compile(
	r"Route::group\s*\(\s*\[[^\]]*?['\"]prefix['\"]\s*=>\s*['\"]([^'\"]+)['\"]"
)
_PREFIX_CALL = re.compile(r"Route::prefix\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_ROUTE_NAME = re.compile(r"->\s*name\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_QUOTED = re.compile(r"^['\"](.*)['\"]$", re.DOTALL)


def _unquote(value: str) -> Optional[str]:
	m = _QUOTED.match(value.strip())
	return m.group(1) if m else None


def _string_list(value: str) -> List[str]:
	inner = value.strip()
	if inner.startswith("[") and inner.endswith("]"):
		inner = inner[1:-1]
	return [v for v in (_unquote(p) for p in split_top_level(inner)) if v]


def normalize_path(path: str) -> str:
	return "/" + path.strip().strip("/")


def statement_tail(text: str, start: int) -> str:
	"""Text from ``start`` to the ``;`` ending the statement, skipping nested brackets."""
	depth = 0
	i = start
	while i < len(text):
		ch = text[i]
		if ch in "([{":
			depth += 1
		elif ch in ")]}":
			if depth == 0:
				break
			depth -= 1
		elif ch == ";" and depth == 0:
			break
		i += 1
	return text[start:i]


def _call_arguments(text: str, match: re.Match) -> Tuple[List[str], int]:
	close = find_closing(text, match.end() - 1)
	if close == -1:
		return split_top_level(text[match.end():]), len(text)
	return split_top_level(text[match.end():close]), close + 1


def parse_handler(raw: Optional[str]) -> RouteHandler:
	if raw is None:
		return RouteHandler(closure=True)
	raw = raw.strip()
	if raw.startswith("["):
		parts = split_top_level(raw[1:-1] if raw.endswith("]") else raw[1:])
		if not parts:
			return RouteHandler(closure=True, raw=raw)
		controller = display_name(parts[0])
		action = _unquote(parts[1]) if len(parts) > 1 else "__invoke"
		return RouteHandler(controller=controller, action=action, raw=raw)
	quoted = _unquote(raw)
	if quoted is not None:
		if "@" in quoted:
			controller, action = quoted.split("@", 1)
			return RouteHandler(controller=display_name(controller), action=action, raw=raw)
		return RouteHandler(controller=display_name(quoted), action="__invoke", raw=raw)
	if raw.endswith("::class"):
		return RouteHandler(controller=display_name(raw), action="__invoke", raw=raw)
	return RouteHandler(closure=True, raw=raw)


def _route_name(text: str, start: int) -> Optional[str]:
	m = _ROUTE_NAME.search(statement_tail(text, start))
	return m.group(1) if m else None


def extract_direct_routes(unit: SourceUnit) -> List[Endpoint]:
	text = unit.content
	found: List[Tuple[int, Endpoint]] = []

	for m in _VERB_CALL.finditer(text):
		args, end = _call_arguments(text, m)
		path = _unquote(args[0]) if args else None
		if path is None:
			continue
		found.append((m.start(), Endpoint(
			methods=[m.group(1).upper()],
			path=normalize_path(path),
			handler=parse_handler(args[1] if len(args) > 1 else None),
			route_name=_route_name(text, end),
			route_file=unit.name,
		)))

	for m in _MATCH_CALL.finditer(text):
		args, end = _call_arguments(text, m)
		if len(args) < 2:
			continue
		path = _unquote(args[1])
		methods = [v.upper() for v in _string_list(args[0])]
		if path is None or not methods:
			continue
		found.append((m.start(), Endpoint(
			methods=methods,
			path=normalize_path(path),
			handler=parse_handler(args[2] if len(args) > 2 else None),
			route_name=_route_name(text, end),
			route_file=unit.name,
		)))

	found.sort(key=lambda item: item[0])
	return [endpoint for _, endpoint in found]


def _resource_filters(args: List[str], tail: str) -> Tuple[Optional[List[str]], Optional[List[str]]]:
	only: Optional[List[str]] = None
	except_: Optional[List[str]] = None
	sources = list(args[2:]) + [tail]
	for source in sources:
		for key in ("only", "except"):
			m = re.search(
				r"""(?:['"]%s['"]\s*=>|->\s*%s\s*\()\s*(\[[^\]]*\]|['"][^'"]*['"])""" % (key, key),
				source,
			)
			if m is None:
				continue
			values = _string_list(m.group(1))
			if key == "only":
				only = values
			else:
				except_ = values
	return only, except_


def expand_resource(
	name: str,
	controller: str,
	route_file: str,
	api: bool = False,
	only: Optional[List[str]] = None,
	except_: Optional[List[str]] = None,
) -> List[Endpoint]:
	base = normalize_path(name)
	plural = name.strip("/")
	singular = plural[:-1] if plural.endswith("s") else plural
	endpoints: List[Endpoint] = []
	for methods, suffix, action, template in RESOURCE_ROUTES:
		if api and action in FORM_ACTIONS:
			continue
		if only is not None and action not in only:
			continue
		if except_ is not None and action in except_:
			continue
		endpoints.append(Endpoint(
			methods=list(methods),
			path=base + suffix,
			handler=RouteHandler(controller=controller, action=action, raw=controller),
			group=API_RESOURCE_GROUP if api else RESOURCE_GROUP,
			description=template.format(plural=plural, singular=singular),
			route_file=route_file,
		))
	return endpoints


def extract_resource_routes(unit: SourceUnit, api: bool = False) -> List[Endpoint]:
	text = unit.content
	wanted = "apiResource" if api else "resource"
	endpoints: List[Endpoint] = []
	for m in _RESOURCE_CALL.finditer(text):
		if m.group(1) != wanted:
			continue
		args, end = _call_arguments(text, m)
		if len(args) < 2:
			continue
		name = _unquote(args[0])
		if name is None:
			continue
		only, except_ = _resource_filters(args, statement_tail(text, end))
		endpoints.extend(
			expand_resource(name, display_name(args[1]), unit.name, api=api, only=only, except_=except_)
		)
	return endpoints


def group_prefixes(text: str) -> List[str]:
	found = [(m.start(), m.group(1)) for m in _GROUP_PREFIX.finditer(text)]
	found += [(m.start(), m.group(1)) for m in _PREFIX_CALL.finditer(text)]
	return [prefix for _, prefix in sorted(found)]


def tag_groups(unit: SourceUnit, endpoints: List[Endpoint]) -> List[Endpoint]:
	"""Label endpoints of this unit whose path starts with a declared group prefix.

	This is a whole-file proximity heuristic: a route is tagged when its path
	starts with the prefix, wherever it sits relative to the group. When more
	than one prefix applies, the one declared last wins.
	"""
	tagged = list(endpoints)
	for prefix in group_prefixes(unit.content):
		marker = normalize_path(prefix)
		for i, endpoint in enumerate(tagged):
			if endpoint.route_file == unit.name and endpoint.path.startswith(marker):
				tagged[i] = endpoint.model_copy(update={"group": prefix})
	return tagged


def extract_endpoints(unit: SourceUnit) -> List[Endpoint]:
	endpoints = extract_direct_routes(unit)
	endpoints += extract_resource_routes(unit)
	endpoints += extract_resource_routes(unit, api=True)
	endpoints = tag_groups(unit, endpoints)
	logger.debug("extracted endpoints", route_file=unit.name, endpoints=len(endpoints))
	return endpoints
