"""Domain-level exceptions for profile reads."""

from __future__ import annotations


class ProfileNotFound(Exception):
	"""Unknown identifier, or a subject the viewer may not learn about."""

	reason = "not_found"

	def __init__(self) -> None:
		super().__init__(self.reason)
