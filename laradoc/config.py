"""Generator settings. Environment variables override the defaults, CLI flags override both."""

from __future__ import annotations

import os
from typing import Any, Dict

from pydantic import BaseModel


ENV_OUTPUT_DIR = "LARADOC_OUTPUT"
ENV_HOST = "LARADOC_HOST"
ENV_PORT = "LARADOC_PORT"
ENV_SHOW_NOTES = "LARADOC_SHOW_NOTES"
ENV_DEBUG = "LARADOC_DEBUG"

DEFAULT_OUTPUT_DIR = "laravel2doc"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3333


def _env_flag(name: str, default: bool) -> bool:
	value = os.environ.get(name)
	if value is None:
		return default
	return value.strip().lower() in ("1", "true", "yes", "on")


class GeneratorConfig(BaseModel):
	output_dir: str = DEFAULT_OUTPUT_DIR
	host: str = DEFAULT_HOST
	port: int = DEFAULT_PORT
	show_notes: bool = True

	@classmethod
	def from_env(cls, **overrides: Any) -> "GeneratorConfig":
		values: Dict[str, Any] = {
			"output_dir": os.environ.get(ENV_OUTPUT_DIR, DEFAULT_OUTPUT_DIR),
			"host": os.environ.get(ENV_HOST, DEFAULT_HOST),
			"port": os.environ.get(ENV_PORT, DEFAULT_PORT),
			"show_notes": _env_flag(ENV_SHOW_NOTES, True),
		}
		values.update({k: v for k, v in overrides.items() if v is not None})
		return cls(**values)
