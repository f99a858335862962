from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict


RELATIONSHIP_KINDS: List[str] = [
	"hasOne",
	"hasMany",
	"belongsTo",
	"belongsToMany",
	"morphTo",
	"morphOne",
	"morphMany",
	"hasOneThrough",
	"hasManyThrough",
]


class Fact(BaseModel):
	model_config = ConfigDict(frozen=True)


class SourceUnit(Fact):
	"""One source file as handed over by the scanner."""

	name: str
	path: str = ""
	content: str = ""


class Attribute(Fact):
	name: str
	type: str = "string"
	is_primary_key: bool = False
	is_foreign_key: bool = False
	references: Optional[str] = None
	sources: List[str] = []

	@property
	def relationship_derived(self) -> bool:
		return bool(self.sources) and set(self.sources) == {"foreign_key"}


class Action(Fact):
	name: str
	params: str = ""
	body: str = ""
	visibility: str = "public"


class Relationship(Fact):
	source_model: str
	kind: str
	name: str
	target_model: Optional[str] = None
	foreign_key: Optional[str] = None


class ModelEntity(Fact):
	name: str
	path: str = ""
	namespace: str = ""
	table_name: Optional[str] = None
	primary_key: str = "id"
	attributes: List[Attribute] = []
	actions: List[Action] = []
	uses_timestamps: bool = True
	uses_soft_deletes: bool = False

	def attribute(self, name: str) -> Optional[Attribute]:
		for attr in self.attributes:
			if attr.name == name:
				return attr
		return None


class ControllerEntity(Fact):
	name: str
	path: str = ""
	namespace: str = ""
	actions: List[Action] = []

	def action(self, name: str) -> Optional[Action]:
		for act in self.actions:
			if act.name == name:
				return act
		return None


class RouteHandler(Fact):
	controller: Optional[str] = None
	action: Optional[str] = None
	closure: bool = False
	raw: str = ""

	@property
	def display(self) -> str:
		if self.closure:
			return "Closure"
		if self.controller and self.action:
			return f"{self.controller}@{self.action}"
		return self.controller or self.raw or "Closure"


class Endpoint(Fact):
	methods: List[str]
	path: str
	handler: RouteHandler
	route_name: Optional[str] = None
	group: Optional[str] = None
	description: Optional[str] = None
	route_file: str = ""

	@property
	def method(self) -> str:
		return "/".join(self.methods)


class ProjectInfo(Fact):
	name: str = "Unknown Laravel Project"
	version: str = "Unknown"
	root: Optional[str] = None
	models: List[ModelEntity] = []
	controllers: List[ControllerEntity] = []
	services: List[ControllerEntity] = []
	relationships: List[Relationship] = []
	endpoints: List[Endpoint] = []


class ScanResult(BaseModel):
	root: str
	name: str = "Unknown Laravel Project"
	version: str = "Unknown"
	is_laravel: bool = False
	models: List[SourceUnit] = []
	controllers: List[SourceUnit] = []
	services: List[SourceUnit] = []
	routes: List[SourceUnit] = []

	def counts(self) -> Dict[str, int]:
		return {
			"models": len(self.models),
			"controllers": len(self.controllers),
			"services": len(self.services),
			"routes": len(self.routes),
		}
