"""API request/response models."""

from __future__ import annotations

import datetime as dt
from typing import Optional

from pydantic import BaseModel, Field

from tripline.domain.models import MemberBalance, ScheduleUpdate, Transfer, TransportAlternative, UpdatePreview


class HealthResponse(BaseModel):
    status: str = "ok"


class ValidationResponse(BaseModel):
    is_feasible: bool
    reason: Optional[str] = Field(default=None, description="Rendered failure reason")
    failure_kind: Optional[str] = Field(default=None, description="Closed failure category")
    arrival_time: Optional[dt.datetime] = None
    conflicts: list[str] = Field(default_factory=list)


class BatchValidationRequest(BaseModel):
    alternative_ids: list[str] = Field(min_length=1, max_length=50)


class BatchValidationItem(BaseModel):
    alternative_id: str
    found: bool = True
    detail: str = ""
    validation: Optional[ValidationResponse] = None


class BatchValidationResponse(BaseModel):
    items: list[BatchValidationItem] = Field(default_factory=list)


class SelectRequest(BaseModel):
    accept_conflicts: bool = Field(default=False, description="Commit even if fixed activities collide")


class SelectResponse(BaseModel):
    alternative_id: str
    applied: UpdatePreview


class ApplyUpdatesRequest(BaseModel):
    updates: list[ScheduleUpdate] = Field(default_factory=list)
    select_alternative_id: Optional[str] = Field(default=None, min_length=1)


class ApplyUpdatesResponse(BaseModel):
    applied: int = 0
    selected_alternative_id: Optional[str] = None


class AlternativeListResponse(BaseModel):
    items: list[TransportAlternative] = Field(default_factory=list)


class SettlementRequest(BaseModel):
    balances: list[MemberBalance] = Field(default_factory=list)


class SettlementResponse(BaseModel):
    transfers: list[Transfer] = Field(default_factory=list)
