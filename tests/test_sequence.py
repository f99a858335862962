from laradoc.sequence import classify, describe, render_sequence, synthesize_sequences


def test_classify_by_name():
	assert classify("store") == "create"
	assert classify("index") == "list"
	assert classify("all") == "list"
	assert classify("view") == "show"
	assert classify("edit") == "update"
	assert classify("remove") == "delete"
	assert classify("publish") == "generic"
	assert classify("storeAll") == "generic"


def test_manifest_records(project):
	manifest = synthesize_sequences(project, generated_at="2024-01-01T00:00:00+00:00")
	ids = [d.id for d in manifest.diagrams]
	assert ids == [
		"PostController-index",
		"PostController-store",
		"PostController-show",
		"PostController-destroy",
		"PostController-publish",
	]
	store = manifest.diagrams[1]
	assert store.type == "create"
	assert store.name == "PostController::store"
	assert store.controller == "Post"
	assert store.file_name == "PostController_store.md"
	assert store.models == ["Post"]
	assert store.description == "Creates a new resource in PostController"
	assert store.timestamp == "2024-01-01T00:00:00+00:00"
	assert manifest.statistics.total_diagrams == 5
	assert manifest.statistics.by_type == {"list": 1, "create": 1, "show": 1, "delete": 1, "generic": 1}
	assert manifest.statistics.by_controller == {"Post": 5}
	assert "text" not in manifest.records()[0]


def test_store_classified_create_regardless_of_body(project):
	manifest = synthesize_sequences(project)
	store = next(d for d in manifest.diagrams if d.method == "store")
	assert "participant V as Validator" in store.text
	assert "R-->>C: 201 Created with data" in store.text


def test_status_codes_per_pattern():
	assert "R-->>C: 200 OK with data" in render_sequence("list", "C1", "index", [])
	assert "R-->>C: 200 OK with data" in render_sequence("update", "C1", "update", [])
	assert "R-->>C: 204 No Content" in render_sequence("delete", "C1", "destroy", ["Post"])


def test_participant_order_and_fallback_model():
	text = render_sequence("show", "PostController", "show", [], show_notes=False)
	lines = [line.strip() for line in text.splitlines() if line.strip().startswith("participant")]
	assert lines == [
		"participant C as Client",
		"participant R as Route",
		"participant PostController as PostController",
		"participant Model as Model",
		"participant DB as Database",
	]
	assert "Note over" not in text


def test_generic_sequence_has_conditional_split():
	text = render_sequence("generic", "PostController", "publish", [])
	assert "alt Uses database" in text
	assert "else Direct response" in text
	assert "Note over PostController: Generic operation flow" in text


def test_describe_generic():
	assert describe("generic", "PostController", "publish") == "Handles publish operation in PostController"
