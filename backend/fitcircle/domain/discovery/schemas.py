"""Pydantic schemas for discovery search."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from fitcircle.domain.profiles.schemas import ProfileCardOut


class SearchResponse(BaseModel):
	mode: Literal["query", "recommended", "connected"]
	query: Optional[str] = None
	limit: int
	items: list[ProfileCardOut]
