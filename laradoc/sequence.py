from __future__ import annotations

import datetime as dt
import posixpath
from string import Template
from typing import Dict, List, Optional, Set

import structlog
from pydantic import BaseModel, Field

from .model import Action, ControllerEntity, ProjectInfo

logger = structlog.get_logger(__name__)


LIFECYCLE_HOOKS = {"__construct", "middleware", "authorize"}

KIND_ALIASES: Dict[str, List[str]] = {
	"list": ["index", "all", "list"],
	"show": ["show", "view", "get"],
	"create": ["store", "create", "add"],
	"update": ["update", "edit"],
	"delete": ["destroy", "delete", "remove"],
}
GENERIC = "generic"

STATUS_CODES = {"list": 200, "show": 200, "create": 201, "update": 200, "delete": 204}

DESCRIPTIONS = {
	"list": "Retrieves a collection of resources from $controller",
	"show": "Retrieves a specific resource from $controller",
	"create": "Creates a new resource in $controller",
	"update": "Updates an existing resource in $controller",
	"delete": "Removes a resource from $controller",
	GENERIC: "Handles $method operation in $controller",
}

NOTES = {
	"list": "This sequence retrieves a list of resources",
	"show": "This sequence retrieves a specific resource by ID",
	"create": "This sequence creates a new resource",
	"update": "This sequence updates an existing resource",
	"delete": "This sequence removes a resource",
	GENERIC: "Generic operation flow",
}

_HEADER = """sequenceDiagram
    autonumber
    participant C as Client
    participant R as Route
    participant $controller as $controller
"""

_BODIES = {
	"list": """    participant $model as $model
    participant DB as Database

    C->>R: GET /resource
    R->>+$controller: $method()
    $controller->>+$model: all() / get() / paginate()
    $model->>+DB: SELECT * FROM table
    DB-->>-$model: Return records
    $model-->>-$controller: Collection of models
    $controller-->>-R: Return JSON response
    R-->>C: $status OK with data
""",
	"show": """    participant $model as $model
    participant DB as Database

    C->>R: GET /resource/{id}
    R->>+$controller: $method(id)
    $controller->>+$model: find(id) / findOrFail(id)
    $model->>+DB: SELECT * FROM table WHERE id = ?
    DB-->>-$model: Return record
    $model-->>-$controller: Model instance
    $controller-->>-R: Return JSON response
    R-->>C: $status OK with data
""",
	"create": """    participant V as Validator
    participant $model as $model
    participant DB as Database

    C->>R: POST /resource
    R->>+$controller: $method(request)
    $controller->>+V: validate(request)
    V-->>-$controller: validated data
    $controller->>+$model: create(data)
    $model->>+DB: INSERT INTO table
    DB-->>-$model: Return new record
    $model-->>-$controller: New model instance
    $controller-->>-R: Return JSON response
    R-->>C: $status Created with data
""",
	"update": """    participant V as Validator
    participant $model as $model
    participant DB as Database

    C->>R: PUT /resource/{id}
    R->>+$controller: $method(request, id)
    $controller->>+V: validate(request)
    V-->>-$controller: validated data
    $controller->>+$model: find(id)
    $model->>+DB: SELECT * FROM table WHERE id = ?
    DB-->>-$model: Return record
    $model-->>-$controller: Model instance
    $controller->>+$model: update(data)
    $model->>+DB: UPDATE table SET ... WHERE id = ?
    DB-->>-$model: Success
    $model-->>-$controller: Updated model
    $controller-->>-R: Return JSON response
    R-->>C: $status OK with data
""",
	"delete": """    participant $model as $model
    participant DB as Database

    C->>R: DELETE /resource/{id}
    R->>+$controller: $method(id)
    $controller->>+$model: find(id)
    $model->>+DB: SELECT * FROM table WHERE id = ?
    DB-->>-$model: Return record
    $model-->>-$controller: Model instance
    $controller->>+$model: delete()
    $model->>+DB: DELETE FROM table WHERE id = ?
    DB-->>-$model: Success
    $model-->>-$controller: Success
    $controller-->>-R: Return JSON response
    R-->>C: $status No Content
""",
	GENERIC: """    participant $model as $model
    participant DB as Database

    C->>R: Request
    R->>+$controller: $method()
    Note over $controller: Process request
    alt Uses database
      $controller->>+$model: operation()
      $model->>+DB: Database query
      DB-->>-$model: Return data
      $model-->>-$controller: Return result
    else Direct response
      Note over $controller: Process without database
    end
    $controller-->>-R: Return response
    R-->>C: Response
""",
}


class SequenceDiagram(BaseModel):
	id: str
	name: str
	controller: str
	method: str
	type: str
	description: str
	models: List[str] = []
	file_name: str
	timestamp: str
	text: str = ""


class SequenceStatistics(BaseModel):
	total_diagrams: int = 0
	by_type: Dict[str, int] = {}
	by_controller: Dict[str, int] = {}


class SequenceManifest(BaseModel):
	project_name: str
	project_version: str
	generated_at: str
	diagrams: List[SequenceDiagram] = []
	statistics: SequenceStatistics = Field(default_factory=SequenceStatistics)

	def records(self) -> List[dict]:
		"""Manifest rows without the diagram text."""
		return [d.model_dump(exclude={"text"}) for d in self.diagrams]


def classify(action_name: str) -> str:
	for kind, aliases in KIND_ALIASES.items():
		if action_name in aliases:
			return kind
	return GENERIC


def describe(kind: str, controller: str, method: str) -> str:
	template = DESCRIPTIONS.get(kind, DESCRIPTIONS[GENERIC])
	return Template(template).substitute(controller=controller, method=method)


def participant_models(body: str, model_names: List[str]) -> List[str]:
	return [name for name in model_names if name and name in body]


def render_sequence(kind: str, controller: str, method: str, models: List[str], show_notes: bool = True) -> str:
	model = models[0] if models else "Model"
	values = {
		"controller": controller,
		"method": method,
		"model": model,
		"status": STATUS_CODES.get(kind, ""),
	}
	text = Template(_HEADER).substitute(values) + Template(_BODIES[kind]).substitute(values)
	if show_notes:
		over = controller if kind == GENERIC else f"{controller},{model}"
		text += f"\n    Note over {over}: {NOTES[kind]}\n"
	return text


def qualifying_actions(controller: ControllerEntity) -> List[Action]:
	return [
		a for a in controller.actions
		if a.visibility == "public" and a.name not in LIFECYCLE_HOOKS
	]


def _qualifier(controller: ControllerEntity) -> str:
	if controller.namespace:
		return controller.namespace.replace("/", "\\").rsplit("\\", 1)[-1]
	return posixpath.basename(posixpath.dirname(controller.path))


def unique_parts(controller: ControllerEntity, action: str, taken: Set[str]) -> List[str]:
	"""Name parts for one diagram; same-named controllers in other folders get their folder prefixed."""
	parts = [controller.name, action]
	if "_".join(parts) in taken:
		qualifier = _qualifier(controller)
		if qualifier:
			parts = [qualifier] + parts
	base, n = list(parts), 2
	while "_".join(parts) in taken:
		parts = base + [str(n)]
		n += 1
	taken.add("_".join(parts))
	return parts


def synthesize_sequences(
	project: ProjectInfo,
	show_notes: bool = True,
	generated_at: Optional[str] = None,
) -> SequenceManifest:
	timestamp = generated_at or dt.datetime.now(dt.timezone.utc).isoformat()
	model_names = [m.name for m in project.models]
	stats = SequenceStatistics()
	diagrams: List[SequenceDiagram] = []
	taken: Set[str] = set()

	for controller in project.controllers:
		short = controller.name[: -len("Controller")] if controller.name.endswith("Controller") else controller.name
		stats.by_controller.setdefault(short, 0)
		for action in qualifying_actions(controller):
			kind = classify(action.name)
			models = participant_models(action.body, model_names)
			parts = unique_parts(controller, action.name, taken)
			diagrams.append(SequenceDiagram(
				id="-".join(parts),
				name=f"{controller.name}::{action.name}",
				controller=short,
				method=action.name,
				type=kind,
				description=describe(kind, controller.name, action.name),
				models=models,
				file_name="_".join(parts) + ".md",
				timestamp=timestamp,
				text=render_sequence(kind, controller.name, action.name, models, show_notes),
			))
			stats.total_diagrams += 1
			stats.by_type[kind] = stats.by_type.get(kind, 0) + 1
			stats.by_controller[short] += 1

	logger.info("synthesized sequence diagrams", diagrams=stats.total_diagrams)
	return SequenceManifest(
		project_name=project.name,
		project_version=project.version,
		generated_at=timestamp,
		diagrams=diagrams,
		statistics=stats,
	)
