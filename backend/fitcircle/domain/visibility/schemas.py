"""Pydantic schemas for privacy settings."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

Tier = Literal["public", "circle", "private"]


class PrivacyFieldOut(BaseModel):
	field: str
	legacy_key: str
	category: str
	visibility: Tier


class PrivacySettingsOut(BaseModel):
	settings: dict[str, Tier]
	fields: list[PrivacyFieldOut]


class PresetOut(BaseModel):
	name: str
	description: str
	settings: dict[str, Tier]
