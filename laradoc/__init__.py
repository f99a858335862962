"""Documentation generator for Laravel projects.

Modules:
- fs_scan.py: Project discovery (models, controllers, services, route files).
- extract.py: Pattern-based facts from model and controller sources.
- routes.py: Endpoint facts from route declaration files.
- builder.py: Assembly of the immutable project model.
- canonical.py: Name canonicalization shared by every synthesizer.
- erd.py, uml.py, sequence.py, apidoc.py: Diagram and API reference synthesizers.
- pipeline.py: One full documentation run.
"""

__all__ = [
	"fs_scan",
	"extract",
	"routes",
	"builder",
	"canonical",
	"erd",
	"uml",
	"sequence",
	"apidoc",
	"pipeline",
]
