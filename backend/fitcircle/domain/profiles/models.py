"""Raw profile records as loaded from the profile store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(slots=True)
class RawProfile:
	"""Unredacted profile row. Never returned to a viewer as-is."""

	user_id: str
	handle: Optional[str] = None
	display_name: Optional[str] = None
	# overall profile visibility, 'public' or 'private'; drives discoverability only
	visibility: str = "private"
	full_name: Optional[str] = None
	picture: Optional[str] = None
	city: Optional[str] = None
	state: Optional[str] = None
	bio: Optional[str] = None
	age: Optional[int] = None
	weight: Optional[float] = None
	body_fat: Optional[float] = None
	fitness_level: Optional[str] = None
	goals: list[Any] = field(default_factory=list)
	limitations: list[Any] = field(default_factory=list)
	workout_history: list[Any] = field(default_factory=list)
	capabilities: list[Any] = field(default_factory=list)
	personal_records: list[Any] = field(default_factory=list)
	badges: list[Any] = field(default_factory=list)
	sports: list[Any] = field(default_factory=list)

	@classmethod
	def from_record(cls, record) -> "RawProfile":
		def _list(key: str) -> list[Any]:
			value = record.get(key)
			return list(value) if value else []

		return cls(
			user_id=str(record["user_id"]),
			handle=record.get("handle"),
			display_name=record.get("display_name"),
			visibility=record.get("visibility") or "private",
			full_name=record.get("full_name"),
			picture=record.get("picture"),
			city=record.get("city"),
			state=record.get("state"),
			bio=record.get("bio"),
			age=record.get("age"),
			weight=record.get("weight"),
			body_fat=record.get("body_fat"),
			fitness_level=record.get("fitness_level"),
			goals=_list("goals"),
			limitations=_list("limitations"),
			workout_history=_list("workout_history"),
			capabilities=_list("capabilities"),
			personal_records=_list("personal_records"),
			badges=_list("badges"),
			sports=_list("sports"),
		)

	def value(self, attribute: str) -> Any:
		return getattr(self, attribute)

	def has_handle(self) -> bool:
		return bool(self.handle and self.handle.strip())

	def is_discoverable(self) -> bool:
		"""Eligible for search/recommendation before any block check."""
		return (self.visibility or "").lower() == "public" or self.has_handle()
