from __future__ import annotations


class LaradocError(Exception):
	"""Base class for errors that abort a documentation run."""


class OutputWriteError(LaradocError):
	def __init__(self, path: str, cause: BaseException) -> None:
		self.path = path
		self.cause = cause
		super().__init__(f"Cannot write {path}: {cause}")
