import json
from textwrap import dedent

import pytest

from laradoc.builder import build_project
from laradoc.model import SourceUnit


USER_MODEL = dedent(
	"""
	<?php

	namespace App\\Models;

	use Illuminate\\Database\\Eloquent\\Model;
	use Illuminate\\Database\\Eloquent\\SoftDeletes;

	class User extends Model
	{
		use HasFactory, SoftDeletes;

		protected $fillable = [
			'name',
			'email',
			'password',
			'team_id',
			'is_admin',
		];

		protected $casts = [
			'email_verified_at' => 'datetime',
			'is_admin' => 'boolean',
		];

		public function posts()
		{
			return $this->hasMany(Post::class);
		}

		public function team()
		{
			return $this->belongsTo(Team::class);
		}

		public function profile()
		{
			return $this->hasOne('App\\Models\\Profile');
		}

		public function getDisplayNameAttribute($value)
		{
			return ucfirst($this->name);
		}
	}
	"""
)

POST_MODEL = dedent(
	"""
	<?php

	namespace App\\Models;

	class Post extends Model
	{
		protected $table = 'blog_posts';

		protected $fillable = ['title', 'body', 'published_date', 'view_count'];

		protected function casts(): array
		{
			return [
				'price' => 'decimal:2',
				'meta' => 'array',
			];
		}

		public function author()
		{
			return $this->belongsTo(User::class, 'author_id');
		}

		public function tags()
		{
			return $this->belongsToMany(Tag::class);
		}
	}
	"""
)

TEAM_MODEL = dedent(
	"""
	<?php

	namespace App\\Models;

	class Team extends Model
	{
		public $timestamps = false;

		protected $primaryKey = 'team_code';

		protected $fillable = ['id', 'team_code', 'label'];
	}
	"""
)

POST_CONTROLLER = dedent(
	"""
	<?php

	namespace App\\Http\\Controllers;

	use App\\Models\\Post;
	use Illuminate\\Http\\Request;

	class PostController extends Controller
	{
		public function __construct()
		{
			$this->middleware('auth');
		}

		public function index()
		{
			return response()->json(Post::all());
		}

		public function store(Request $request)
		{
			$data = $request->validate([
				'title' => 'required|max:255',
				'body' => 'required',
			]);
			return response()->json(Post::create($data), 201);
		}

		public function show(Post $post)
		{
			return response()->json($post);
		}

		public function destroy(int $id, $force = false)
		{
			Post::findOrFail($id)->delete();
			return response()->noContent();
		}

		public function publish($id)
		{
			if ($id) {
				return redirect('/');
			}
		}

		protected function helper()
		{
			return null;
		}
	}
	"""
)

API_ROUTES = dedent(
	"""
	<?php

	use App\\Http\\Controllers\\PostController;
	use Illuminate\\Support\\Facades\\Route;

	Route::get('/users', [UserController::class, 'index'])->name('users.index');
	Route::post('users', 'UserController@store');
	Route::get('/ping', function () {
		return ['pong' => true];
	});
	Route::match(['get', 'post'], '/search', [SearchController::class, 'run']);

	Route::group(['prefix' => 'admin'], function () {
		Route::delete('/admin/cache', [CacheController::class, 'clear']);
	});

	Route::resource('posts', PostController::class, ['only' => ['index', 'show']]);
	Route::apiResource('comments', CommentController::class)->except(['destroy']);
	"""
)


@pytest.fixture
def user_unit():
	return SourceUnit(name="User", path="app/Models/User.php", content=USER_MODEL)


@pytest.fixture
def post_unit():
	return SourceUnit(name="Post", path="app/Models/Post.php", content=POST_MODEL)


@pytest.fixture
def team_unit():
	return SourceUnit(name="Team", path="app/Models/Team.php", content=TEAM_MODEL)


@pytest.fixture
def controller_unit():
	return SourceUnit(name="PostController", path="app/Http/Controllers/PostController.php", content=POST_CONTROLLER)


@pytest.fixture
def routes_unit():
	return SourceUnit(name="api", path="routes/api.php", content=API_ROUTES)


@pytest.fixture
def project(user_unit, post_unit, team_unit, controller_unit, routes_unit):
	return build_project(
		"acme/blog",
		"v10.0.0",
		[user_unit, post_unit, team_unit],
		[controller_unit],
		[routes_unit],
	)


@pytest.fixture
def laravel_root(tmp_path):
	files = {
		"app/Models/User.php": USER_MODEL,
		"app/Models/Post.php": POST_MODEL,
		"app/Models/Team.php": TEAM_MODEL,
		"app/Http/Controllers/PostController.php": POST_CONTROLLER,
		"routes/api.php": API_ROUTES,
	}
	for rel, text in files.items():
		path = tmp_path / rel
		path.parent.mkdir(parents=True, exist_ok=True)
		path.write_text(text)
	(tmp_path / "composer.json").write_text(
		json.dumps({"name": "acme/blog", "require": {"laravel/framework": "^10.0"}})
	)
	(tmp_path / "composer.lock").write_text(
		json.dumps({"packages": [{"name": "laravel/framework", "version": "v10.48.4"}]})
	)
	return tmp_path
