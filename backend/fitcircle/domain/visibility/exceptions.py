"""Domain-level exceptions for visibility settings."""

from __future__ import annotations

from typing import Any

from fitcircle.infra.rate_limit import RateLimitExceeded


class VisibilityError(Exception):
	"""Base class for visibility feature errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class InvalidVisibilityValue(VisibilityError):
	"""A settings update named an unknown field or an unknown tier."""

	reason = "invalid_visibility"

	def __init__(self, field_key: str, value: Any) -> None:
		super().__init__()
		self.field_key = field_key
		self.value = value

	def __str__(self) -> str:
		return f"invalid visibility value for {self.field_key}"


class UnknownPresetError(VisibilityError):
	reason = "unknown_preset"


class PrivacyRateLimitExceeded(RateLimitExceeded):
	"""Raised when privacy settings writes hit a quota."""
