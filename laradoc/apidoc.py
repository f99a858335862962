from __future__ import annotations

import datetime as dt
import re
from typing import Dict, List, Optional

import structlog
from pydantic import BaseModel

from .canonical import NameResolver
from .extract import find_closing, split_top_level
from .model import Action, ControllerEntity, Endpoint, ProjectInfo

logger = structlog.get_logger(__name__)


DEFAULT_GROUP = "Other"

_VALIDATION_CALL = re.compile(
	r"(?:\$request\s*->\s*validate|request\(\)\s*->\s*validate|\$this\s*->\s*validate|Validator::make|\bvalidate)\s*\("
)
_PARAM_MODIFIERS = {"public", "protected", "private", "readonly"}
_ATTRIBUTE = re.compile(r"#\[[^\]]*\]")


class ParameterDoc(BaseModel):
	name: str
	type: str = "mixed"


class EndpointDoc(BaseModel):
	method: str
	path: str
	handler: str
	description: str
	route_name: Optional[str] = None
	parameters: List[ParameterDoc] = []
	validation: Optional[str] = None
	returns_json: bool = False


class EndpointGroup(BaseModel):
	label: str
	endpoints: List[EndpointDoc] = []


class RouteFileSection(BaseModel):
	name: str
	anchor: str
	groups: List[EndpointGroup] = []


class ApiDocument(BaseModel):
	project_name: str
	project_version: str
	generated_at: str
	route_files: List[RouteFileSection] = []


def route_description(method: str, path: str) -> str:
	parts = [p for p in path.split("/") if p]
	resource = parts[-1] if parts else "resource"
	if method == "GET":
		if "/{" in path or "/:" in path:
			return f"Retrieve a specific {resource}"
		return f"List {resource}"
	if method == "POST":
		return f"Create a new {resource}"
	if method in ("PUT", "PATCH"):
		return f"Update a specific {resource}"
	if method == "DELETE":
		return f"Delete a specific {resource}"
	return f"{method} {path}"


def anchor(text: str) -> str:
	return re.sub(r"[^a-z0-9]+", "-", text.lower())


def parse_parameters(params: str) -> List[ParameterDoc]:
	docs: List[ParameterDoc] = []
	for raw in split_top_level(_ATTRIBUTE.sub("", params)):
		declaration = split_top_level(raw, "=")[0] if "=" in raw else raw
		tokens = [t for t in declaration.split() if t not in _PARAM_MODIFIERS]
		if not tokens:
			continue
		name = tokens[-1].lstrip("&.").lstrip("$")
		docs.append(ParameterDoc(name=name, type=tokens[0] if len(tokens) > 1 else "mixed"))
	return docs


def validation_block(body: str) -> Optional[str]:
	m = _VALIDATION_CALL.search(body)
	if m is None:
		return None
	close = find_closing(body, m.end() - 1)
	if close == -1:
		return None
	return body[m.start():close + 1]


def returns_json(body: str) -> bool:
	return "response()->json(" in body or "JsonResponse" in body


def resolve_action(endpoint: Endpoint, controllers: NameResolver[ControllerEntity]) -> Optional[Action]:
	handler = endpoint.handler
	if handler.closure or not handler.controller or not handler.action:
		return None
	controller = controllers.resolve(handler.controller)
	if controller is None:
		return None
	return controller.action(handler.action)


def document_endpoint(endpoint: Endpoint, controllers: NameResolver[ControllerEntity]) -> EndpointDoc:
	method = endpoint.method
	doc = EndpointDoc(
		method=method,
		path=endpoint.path,
		handler=endpoint.handler.display,
		description=endpoint.description or route_description(endpoint.methods[0], endpoint.path),
		route_name=endpoint.route_name,
	)
	action = resolve_action(endpoint, controllers)
	if action is not None:
		doc.parameters = parse_parameters(action.params)
		doc.validation = validation_block(action.body)
		doc.returns_json = returns_json(action.body)
	return doc


def synthesize_api_doc(
	project: ProjectInfo,
	controllers: Optional[NameResolver[ControllerEntity]] = None,
	generated_at: Optional[str] = None,
) -> ApiDocument:
	controllers = controllers or NameResolver(
		list(project.controllers) + list(project.services), suffix="controller"
	)
	sections: Dict[str, Dict[str, List[EndpointDoc]]] = {}
	for endpoint in project.endpoints:
		groups = sections.setdefault(endpoint.route_file, {})
		groups.setdefault(endpoint.group or DEFAULT_GROUP, []).append(
			document_endpoint(endpoint, controllers)
		)

	doc = ApiDocument(
		project_name=project.name,
		project_version=project.version or "Unknown",
		generated_at=generated_at or dt.datetime.now(dt.timezone.utc).isoformat(),
		route_files=[
			RouteFileSection(
				name=name,
				anchor=anchor(name),
				groups=[EndpointGroup(label=label, endpoints=eps) for label, eps in groups.items()],
			)
			for name, groups in sections.items()
		],
	)
	logger.info("synthesized api documentation", endpoints=len(project.endpoints), route_files=len(sections))
	return doc


def _endpoint_detail(ep: EndpointDoc) -> List[str]:
	out = [
		f"### {ep.method} {ep.path}",
		"",
		f"**Handler:** {ep.handler}",
		"",
		f"**Description:** {ep.description}",
		"",
	]
	if ep.route_name:
		out += [f"**Route name:** {ep.route_name}", ""]
	if ep.parameters:
		out += ["**Parameters:**", ""]
		out += [f"- `{p.name}` ({p.type})" for p in ep.parameters]
		out.append("")
	if ep.validation:
		out += ["**Validation Rules:**", "", "```php", ep.validation, "```", ""]
	if ep.returns_json:
		out += ["**Returns:** JSON Response", ""]
	out += ["---", ""]
	return out


def render_markdown(doc: ApiDocument) -> str:
	out = [
		"# API Documentation",
		"",
		f"## Project: {doc.project_name}",
		"",
		f"Laravel Version: {doc.project_version}",
		"",
		f"Generated: {doc.generated_at}",
		"",
		"## Table of Contents",
		"",
	]
	out += [f"- [{section.name}](#{section.anchor})" for section in doc.route_files]
	out.append("")
	for section in doc.route_files:
		out += [f"## {section.name}", ""]
		for group in section.groups:
			if group.label != DEFAULT_GROUP:
				out += [f"### {group.label}", ""]
			out += [
				"| Method | Endpoint | Handler | Description |",
				"|--------|----------|---------|-------------|",
			]
			out += [
				f"| {ep.method} | {ep.path} | {ep.handler} | {ep.description} |"
				for ep in group.endpoints
			]
			out.append("")
			for ep in group.endpoints:
				out += _endpoint_detail(ep)
	return "\n".join(out) + "\n"
