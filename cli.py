from __future__ import annotations

import argparse
import json
import os
import sys

import structlog
import uvicorn

from api import create_app
from laradoc.builder import build_from_scan
from laradoc.config import GeneratorConfig
from laradoc.errors import LaradocError
from laradoc.fs_scan import scan_laravel_project
from laradoc.logging_config import configure_logging
from laradoc.pipeline import generate_documentation, synthesize_all

logger = structlog.get_logger("laradoc.cli")


def cmd_generate(args: argparse.Namespace) -> None:
	config = GeneratorConfig.from_env(output_dir=args.output, show_notes=False if args.no_notes else None)
	result = generate_documentation(args.path, config)
	print(f"Documentation written to {result.output_dir} ({len(result.files)} files)")
	if args.serve:
		config = GeneratorConfig.from_env(host=args.host, port=args.port)
		uvicorn.run(create_app(result.output_dir), host=config.host, port=config.port)


def cmd_analyze(args: argparse.Namespace) -> None:
	project = build_from_scan(scan_laravel_project(os.path.abspath(args.path)))
	docs = synthesize_all(project, GeneratorConfig.from_env())
	print(json.dumps({"project": project.model_dump(), "uml": docs.uml.data.model_dump()}, indent=2))


def cmd_serve(args: argparse.Namespace) -> None:
	config = GeneratorConfig.from_env(output_dir=args.docs, host=args.host, port=args.port)
	uvicorn.run(create_app(os.path.abspath(config.output_dir)), host=config.host, port=config.port)


def main() -> None:
	parser = argparse.ArgumentParser(prog="laradoc")
	parser.add_argument("--debug", action="store_true", help="Log extraction details")
	sub = parser.add_subparsers(dest="cmd", required=True)

	pg = sub.add_parser("generate", help="Generate ERD, UML, sequence and API documentation")
	pg.add_argument("path", nargs="?", default=".", help="Path to Laravel project root")
	pg.add_argument("-o", "--output", default=None, help="Output directory (relative to the project root)")
	pg.add_argument("--no-notes", action="store_true", help="Omit notes from sequence diagrams")
	pg.add_argument("--serve", action="store_true", help="Serve the documentation when done")
	pg.add_argument("--host", default=None)
	pg.add_argument("-p", "--port", type=int, default=None)
	pg.set_defaults(func=cmd_generate)

	pa = sub.add_parser("analyze", help="Print the extracted project model as JSON")
	pa.add_argument("path", help="Path to Laravel project root")
	pa.set_defaults(func=cmd_analyze)

	ps = sub.add_parser("serve", help="Serve previously generated documentation")
	ps.add_argument("docs", nargs="?", default=None, help="Generated documentation directory")
	ps.add_argument("--host", default=None)
	ps.add_argument("-p", "--port", type=int, default=None)
	ps.set_defaults(func=cmd_serve)

	args = parser.parse_args()
	configure_logging(debug=args.debug)
	try:
		args.func(args)
	except LaradocError as e:
		logger.error("documentation run failed", error=str(e))
		sys.exit(1)


if __name__ == "__main__":
	main()
