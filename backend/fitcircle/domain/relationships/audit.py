"""Audit helpers for relationship transitions."""

from __future__ import annotations

from typing import Dict

from fitcircle.domain.common.audit import append_event
from fitcircle.domain.relationships.models import Relationship
from fitcircle.obs import metrics as obs_metrics


async def log_relationship_event(event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **fields}
	await append_event("x:relationships.events", payload)


async def record_transition(event: str, rel: Relationship, *, actor_id: str) -> None:
	obs_metrics.inc_relationship_transition(rel.status.value)
	await log_relationship_event(
		event,
		{
			"relationship_id": rel.id,
			"actor_id": actor_id,
			"requester_id": rel.requester_id,
			"addressee_id": rel.addressee_id,
			"status": rel.status.value,
		},
	)


def inc_connect(outcome: str) -> None:
	obs_metrics.inc_connect(outcome)
