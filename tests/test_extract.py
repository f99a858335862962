from textwrap import dedent

from laradoc.extract import (
	extract_actions,
	extract_attributes,
	extract_casts,
	extract_foreign_keys,
	extract_model,
	extract_relationships,
	find_closing,
	infer_attribute_type,
	map_cast_type,
	merge_foreign_keys,
	split_top_level,
)
from laradoc.model import SourceUnit


def test_map_cast_type():
	assert map_cast_type("decimal") == "float"
	assert map_cast_type("decimal:2") == "float"
	assert map_cast_type("integer") == "int"
	assert map_cast_type("array") == "json"
	assert map_cast_type("timestamp") == "datetime"
	assert map_cast_type("uuid") == "string"
	assert map_cast_type("encrypted") == "string"


def test_infer_attribute_type_priority():
	assert infer_attribute_type("id") == "int"
	assert infer_attribute_type("owner_id") == "int"
	assert infer_attribute_type("email") == "string"
	# "email" outranks "date"
	assert infer_attribute_type("email_update_date") == "string"
	assert infer_attribute_type("published_date") == "datetime"
	assert infer_attribute_type("is_active") == "boolean"
	assert infer_attribute_type("this_is_flag") == "string"
	assert infer_attribute_type("view_count") == "float"
	assert infer_attribute_type("title") == "string"


def test_fillable_then_casts_override(user_unit):
	attrs = {a.name: a for a in extract_attributes(user_unit.content)}
	assert list(attrs) == ["name", "email", "password", "team_id", "is_admin", "email_verified_at"]
	assert attrs["is_admin"].type == "boolean"
	assert attrs["is_admin"].sources == ["fillable", "cast"]
	assert attrs["email_verified_at"].type == "datetime"
	assert attrs["team_id"].is_foreign_key
	assert attrs["team_id"].references == "team"


def test_casts_method_form(post_unit):
	assert extract_casts(post_unit.content) == {"price": "decimal:2", "meta": "array"}
	attrs = {a.name: a for a in extract_attributes(post_unit.content)}
	assert attrs["price"].type == "float"
	assert attrs["meta"].type == "json"
	assert attrs["published_date"].type == "datetime"


def test_primary_key_override_unflags_id(team_unit):
	attrs = {a.name: a for a in extract_attributes(team_unit.content)}
	assert attrs["team_code"].is_primary_key
	assert not attrs["id"].is_primary_key


def test_primary_key_override_named_id_keeps_flag():
	text = "protected $primaryKey = 'id'; protected $fillable = ['id', 'name'];"
	attrs = {a.name: a for a in extract_attributes(text)}
	assert attrs["id"].is_primary_key


def test_extract_actions_captures_bodies_and_visibility(controller_unit):
	actions = {a.name: a for a in extract_actions(controller_unit.content)}
	assert list(actions) == ["__construct", "index", "store", "show", "destroy", "publish", "helper"]
	assert actions["destroy"].params == "int $id, $force = false"
	assert "findOrFail" in actions["destroy"].body
	assert "return redirect('/');" in actions["publish"].body
	assert actions["helper"].visibility == "protected"


def test_extract_actions_skips_abstract_methods():
	text = dedent(
		"""
		abstract class Repo {
			abstract public function find($id);
			public function all() { return []; }
		}
		"""
	)
	assert [a.name for a in extract_actions(text)] == ["all"]


def test_braces_in_strings_do_not_end_body():
	text = "public function show() { $x = '}'; return $x; } public function next() {}"
	actions = extract_actions(text)
	assert [a.name for a in actions] == ["show", "next"]
	assert "return $x;" in actions[0].body


def test_extract_relationships(user_unit):
	actions = extract_actions(user_unit.content)
	rels = {r.name: r for r in extract_relationships("User", actions)}
	assert set(rels) == {"posts", "team", "profile"}
	assert rels["posts"].kind == "hasMany"
	assert rels["posts"].target_model == "Post::class"
	assert rels["profile"].target_model == "'App\\Models\\Profile'"
	assert rels["team"].source_model == "User"


def test_relationship_kinds_through_and_morph():
	text = dedent(
		"""
		class Country extends Model {
			public function posts() { return $this->hasManyThrough(Post::class, User::class); }
			public function commentable() { return $this->morphTo(); }
			public function image() { return $this->morphOne(Image::class, 'imageable'); }
		}
		"""
	)
	rels = {r.name: r for r in extract_relationships("Country", extract_actions(text))}
	assert rels["posts"].kind == "hasManyThrough"
	assert rels["posts"].target_model == "Post::class"
	assert rels["commentable"].kind == "morphTo"
	assert rels["commentable"].target_model is None
	assert rels["image"].kind == "morphOne"


def test_belongs_to_implies_default_foreign_key():
	text = "class Comment extends Model { public function post() { return $this->belongsTo(Post::class); } }"
	entity, rels = extract_model_from_text(text)
	attr = entity.attribute("post_id")
	assert attr is not None
	assert attr.is_foreign_key
	assert attr.references == "post"
	assert attr.relationship_derived


def test_explicit_foreign_key_wins_over_literal(post_unit):
	entity, _ = extract_model(post_unit)
	attr = entity.attribute("author_id")
	assert attr.references == "user"
	assert attr.type == "int"


def test_quoted_id_literal_becomes_foreign_key():
	fks = extract_foreign_keys("$q->where('category_id', 1);", [])
	assert [(fk.name, fk.references) for fk in fks] == [("category_id", "category")]


def test_merge_foreign_keys_updates_existing_entry(user_unit):
	entity, rels = extract_model(user_unit)
	team_ids = [a for a in entity.attributes if a.name == "team_id"]
	assert len(team_ids) == 1
	assert "fillable" in team_ids[0].sources
	assert "foreign_key" in team_ids[0].sources
	assert not team_ids[0].relationship_derived
	merged = merge_foreign_keys(entity.attributes, extract_foreign_keys(user_unit.content, rels))
	assert [a.name for a in merged] == [a.name for a in entity.attributes]


def test_extract_model_flags(user_unit, team_unit, post_unit):
	user, _ = extract_model(user_unit)
	team, _ = extract_model(team_unit)
	post, _ = extract_model(post_unit)
	assert user.namespace == "App\\Models"
	assert user.uses_soft_deletes
	assert user.uses_timestamps
	assert not team.uses_timestamps
	assert team.primary_key == "team_code"
	assert post.table_name == "blog_posts"


def test_unit_without_patterns_yields_nothing():
	entity, rels = extract_model_from_text("<?php echo 'hello';")
	assert entity.attributes == []
	assert rels == []


def test_split_top_level_respects_nesting():
	assert split_top_level("['a', 'b'], fn($x) => f($x, 1), 'c,d'") == [
		"['a', 'b']",
		"fn($x) => f($x, 1)",
		"'c,d'",
	]
	assert find_closing("f(a, (b))", 1) == 8


def extract_model_from_text(text):
	return extract_model(SourceUnit(name="Comment", content=text))
