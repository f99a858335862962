from __future__ import annotations

from typing import Dict, List, Optional

import structlog

from .canonical import canonical_name
from .extract import extract_controller, extract_model
from .model import Attribute, ControllerEntity, Endpoint, ModelEntity, ProjectInfo, Relationship, ScanResult, SourceUnit
from .routes import extract_endpoints

logger = structlog.get_logger(__name__)


DEFAULT_PRIMARY_KEY = Attribute(name="id", type="int", is_primary_key=True, sources=["default"])


def with_default_primary_key(entity: ModelEntity) -> ModelEntity:
	if any(a.is_primary_key for a in entity.attributes):
		return entity
	return entity.model_copy(
		update={"attributes": [DEFAULT_PRIMARY_KEY] + list(entity.attributes), "primary_key": "id"}
	)


def build_project(
	name: str,
	version: str,
	model_units: List[SourceUnit],
	controller_units: List[SourceUnit],
	route_units: List[SourceUnit],
	service_units: Optional[List[SourceUnit]] = None,
	root: Optional[str] = None,
) -> ProjectInfo:
	"""Merge per-unit facts into one immutable project model."""
	models: List[ModelEntity] = []
	relationships: List[Relationship] = []
	seen: Dict[str, str] = {}

	for unit in model_units:
		entity, rels = extract_model(unit)
		key = canonical_name(entity.name)
		if key in seen:
			logger.warning("duplicate model name ignored", model=entity.name, path=unit.path, first=seen[key])
			continue
		seen[key] = unit.path
		models.append(with_default_primary_key(entity))
		relationships.extend(rels)

	controllers: List[ControllerEntity] = [extract_controller(u) for u in controller_units]
	services: List[ControllerEntity] = [extract_controller(u) for u in service_units or []]

	endpoints: List[Endpoint] = []
	for unit in route_units:
		endpoints.extend(extract_endpoints(unit))

	project = ProjectInfo(
		name=name,
		version=version,
		root=root,
		models=models,
		controllers=controllers,
		services=services,
		relationships=relationships,
		endpoints=endpoints,
	)
	logger.info(
		"built project model",
		project=name,
		models=len(models),
		controllers=len(controllers),
		services=len(services),
		relationships=len(relationships),
		endpoints=len(endpoints),
	)
	return project


def build_from_scan(scan: ScanResult) -> ProjectInfo:
	return build_project(
		scan.name,
		scan.version,
		scan.models,
		scan.controllers,
		scan.routes,
		service_units=scan.services,
		root=scan.root,
	)
