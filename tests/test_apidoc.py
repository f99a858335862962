from laradoc.apidoc import parse_parameters, render_markdown, route_description, synthesize_api_doc, validation_block


GENERATED = "2024-01-01T00:00:00+00:00"


def endpoint_docs(doc):
	return {
		(ep.method, ep.path): ep
		for section in doc.route_files
		for group in section.groups
		for ep in group.endpoints
	}


def test_grouping_by_file_then_label(project):
	doc = synthesize_api_doc(project, generated_at=GENERATED)
	assert [s.name for s in doc.route_files] == ["api"]
	groups = [g.label for g in doc.route_files[0].groups]
	assert groups == ["Other", "admin", "Resource", "API Resource"]


def test_default_and_resource_descriptions(project):
	docs = endpoint_docs(synthesize_api_doc(project, generated_at=GENERATED))
	assert docs[("GET", "/users")].description == "List users"
	assert docs[("POST", "/users")].description == "Create a new users"
	assert docs[("GET", "/posts")].description == "List all posts"
	assert docs[("PUT/PATCH", "/comments/{id}")].description == "Update a specific comment"


def test_route_description():
	assert route_description("GET", "/posts/{id}") == "Retrieve a specific {id}"
	assert route_description("DELETE", "/posts") == "Delete a specific posts"
	assert route_description("OPTIONS", "/x") == "OPTIONS /x"
	assert route_description("GET", "/") == "List resource"


def test_annotations_for_resolved_actions(project):
	docs = endpoint_docs(synthesize_api_doc(project, generated_at=GENERATED))
	index = docs[("GET", "/posts")]
	assert index.returns_json
	assert index.parameters == []
	show = docs[("GET", "/posts/{id}")]
	assert [(p.name, p.type) for p in show.parameters] == [("post", "Post")]


def test_unresolved_handler_rendered_raw(project):
	docs = endpoint_docs(synthesize_api_doc(project, generated_at=GENERATED))
	users = docs[("GET", "/users")]
	assert users.handler == "UserController@index"
	assert users.parameters == []
	assert not users.returns_json
	assert docs[("GET", "/ping")].handler == "Closure"


def test_parse_parameters():
	params = parse_parameters("Request $request, int $id, $force = false, ?string $q = null")
	assert [(p.name, p.type) for p in params] == [
		("request", "Request"),
		("id", "int"),
		("force", "mixed"),
		("q", "?string"),
	]


def test_validation_block():
	body = "$data = $request->validate(['title' => 'required', 'tags' => ['array']]); return $data;"
	assert validation_block(body) == "$request->validate(['title' => 'required', 'tags' => ['array']])"
	assert validation_block("return 1;") is None


def test_markdown_layout(project):
	md = render_markdown(synthesize_api_doc(project, generated_at=GENERATED))
	assert md.startswith("# API Documentation\n\n## Project: acme/blog\n")
	assert "Laravel Version: v10.0.0" in md
	assert "- [api](#api)" in md
	assert "| GET | /users | UserController@index | List users |" in md
	assert "### Resource" in md
	assert "### Other" not in md
	assert "**Route name:** users.index" in md
	assert "**Returns:** JSON Response" in md
