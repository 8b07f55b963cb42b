"""JSON log lines with request context; profile values are always redacted."""

from __future__ import annotations

import json
import logging
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fitcircle.domain.visibility.models import FIELD_ATTRIBUTES, ProfileField
from fitcircle.settings import settings

_REQUEST_ID: ContextVar[Optional[str]] = ContextVar("obs_request_id", default=None)
_ROUTE: ContextVar[Optional[str]] = ContextVar("obs_route", default=None)
_USER_ID: ContextVar[Optional[str]] = ContextVar("obs_user_id", default=None)

_CONTEXT: Dict[str, ContextVar[Optional[str]]] = {
	"request_id": _REQUEST_ID,
	"route": _ROUTE,
	"user_id": _USER_ID,
}

_CREDENTIAL_KEYWORDS = ("token", "secret", "authorization", "password")

# Governed profile attributes and field names; a log extra named after one is never printed.
_PROFILE_KEYS = frozenset(
	{field.value for field in ProfileField}
	| {attribute for attributes in FIELD_ATTRIBUTES.values() for attribute in attributes}
)

# Attributes every LogRecord carries; anything else on a record is a caller extra.
_RECORD_ATTRS = frozenset(logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__) | {"message"}


def bind_context(
	*,
	request_id: Optional[str] = None,
	route: Optional[str] = None,
	user_id: Optional[str] = None,
) -> Dict[str, Token]:
	"""Bind request fields for the current task and return reset tokens."""
	values = {"request_id": request_id, "route": route, "user_id": user_id}
	return {key: _CONTEXT[key].set(value) for key, value in values.items() if value is not None}


def reset_context(tokens: Dict[str, Token]) -> None:
	for key, token in tokens.items():
		_CONTEXT[key].reset(token)


def current_request_id() -> Optional[str]:
	return _REQUEST_ID.get()


def _redacted(key: str) -> bool:
	lowered = key.lower()
	return lowered in _PROFILE_KEYS or any(keyword in lowered for keyword in _CREDENTIAL_KEYWORDS)


def _scrub(key: str, value: Any) -> Any:
	if _redacted(key):
		return "[redacted]"
	if isinstance(value, dict):
		return {str(name): _scrub(str(name), nested) for name, nested in value.items()}
	return value


class JSONLogFormatter(logging.Formatter):
	"""One JSON object per record."""

	def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (match logging api)
		payload: Dict[str, object] = {
			"ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
			"level": record.levelname.lower(),
			"msg": record.getMessage(),
			"logger": record.name,
			"service": settings.service_name,
			"env": settings.environment,
			"commit": settings.git_commit,
		}
		for key, var in _CONTEXT.items():
			value = var.get()
			if value:
				payload[key] = value
		if record.exc_info:
			payload["exc_info"] = self.formatException(record.exc_info)
		for key, value in record.__dict__.items():
			if key in _RECORD_ATTRS or key in payload:
				continue
			payload[key] = _scrub(key, value)
		return json.dumps(payload, separators=(",", ":"), default=str)


def configure_logging() -> None:
	root = logging.getLogger()
	root.handlers.clear()
	handler = logging.StreamHandler()
	handler.setFormatter(JSONLogFormatter())
	root.addHandler(handler)
	root.setLevel(settings.obs_log_level)
