"""Domain-level exceptions for connections between users."""

from __future__ import annotations

from fitcircle.infra.rate_limit import RateLimitExceeded


class RelationshipError(Exception):
	"""Base class for relationship feature errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class RelationshipConflict(RelationshipError):
	reason = "conflict"


class AlreadyConnectedError(RelationshipConflict):
	reason = "already_connected"


class DuplicateRelationship(RelationshipConflict):
	"""The store already holds a record for this unordered pair."""

	reason = "duplicate"


class SelfTargetError(RelationshipError):
	reason = "self_target"


class BlockedError(RelationshipError):
	reason = "blocked"


class RelationshipForbidden(RelationshipError):
	reason = "forbidden"


class RelationshipNotFound(RelationshipError):
	reason = "not_found"


class RelationshipStateError(RelationshipError):
	reason = "not_pending"


class ConnectCooldownError(RelationshipError):
	reason = "cooldown"

	def __init__(self, retry_after: int) -> None:
		super().__init__()
		self.retry_after = retry_after


class ConnectRateLimitExceeded(RateLimitExceeded):
	"""Raised when connect requests hit a quota."""

	def __init__(self, reason: str) -> None:
		super().__init__(reason)
		self.reason = reason
