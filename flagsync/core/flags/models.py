from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class FeatureFlag(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    key: str
    version: int = Field(default=0, ge=0)
    on: bool = False
    variations: List[Any] = Field(default_factory=list)
    off_variation: Optional[int] = Field(default=None, alias="offVariation")
    fallthrough_variation: Optional[int] = Field(default=None, alias="fallthroughVariation")
    prerequisites: List[str] = Field(default_factory=list)
    track_events: bool = Field(default=False, alias="trackEvents")
    debug_events_until_date: Optional[int] = Field(default=None, alias="debugEventsUntilDate")
    deleted: bool = False
