"""Ordering rules for discovery results.

Each rule is a (predicate, weight) pair. A candidate's score is the sum of
the weights of the predicates it satisfies; weights are powers of two so a
higher rule always outranks every combination of lower ones.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from fitcircle.domain.relationships.models import RelationshipView
from fitcircle.domain.visibility.redactor import RedactedProfile


@dataclass(slots=True)
class Candidate:
	"""A discoverable subject after redaction for the current viewer."""

	profile: RedactedProfile
	view: RelationshipView

	@property
	def user_id(self) -> str:
		return self.profile.user_id

	@property
	def handle_key(self) -> str:
		return (self.profile.handle or "").casefold()

	@property
	def name_key(self) -> str:
		return (self.profile.display_name or "").casefold()


Predicate = Callable[[Candidate], bool]
RankingRule = tuple[Predicate, int]

# Fields consulted by the text filter only while visible to the viewer.
GATED_TEXT_ATTRIBUTES = ("city", "state", "bio")


def normalize_query(query: Optional[str]) -> Optional[str]:
	"""Trim, drop a leading '@' and casefold; None when nothing is left."""
	if query is None:
		return None
	text = query.strip().lstrip("@").strip()
	return text.casefold() or None


def matches(candidate: Candidate, needle: str) -> bool:
	"""Case-insensitive substring match against what the viewer can see."""
	if needle in candidate.handle_key or needle in candidate.name_key:
		return True
	for attribute in GATED_TEXT_ATTRIBUTES:
		value = candidate.profile.visible_value(attribute)
		if isinstance(value, str) and needle in value.casefold():
			return True
	return False


def query_rules(needle: str) -> list[RankingRule]:
	return [
		(lambda c: c.handle_key == needle, 4),
		(lambda c: needle in c.handle_key, 2),
		(lambda c: needle in c.name_key, 1),
	]


# Completeness is judged on the redacted profile so hidden values cannot reorder results.
RECOMMENDED_RULES: list[RankingRule] = [
	(lambda c: bool(c.profile.visible_value("picture")), 4),
	(lambda c: bool(c.profile.visible_value("bio")), 2),
	(lambda c: bool(c.profile.handle and c.profile.handle.strip()), 1),
]


def score(candidate: Candidate, rules: Sequence[RankingRule]) -> int:
	return sum(weight for predicate, weight in rules if predicate(candidate))


def rank(candidates: Iterable[Candidate], needle: Optional[str]) -> list[Candidate]:
	items = list(candidates)
	if needle:
		rules = query_rules(needle)
		items.sort(key=lambda c: (-score(c, rules), c.name_key, c.user_id))
	else:
		# list.sort is stable: equal scores keep the store's order
		items.sort(key=lambda c: -score(c, RECOMMENDED_RULES))
	return items


def clamp_limit(raw: object, *, default: int, maximum: int) -> int:
	"""Parse a client limit; anything unusable or out of range becomes the default."""
	if raw is None or isinstance(raw, bool):
		return default
	try:
		value = int(str(raw).strip())
	except ValueError:
		return default
	if value < 1 or value > maximum:
		return default
	return value
