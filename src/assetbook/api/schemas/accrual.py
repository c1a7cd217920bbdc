"""Pydantic schemas for deposit accrual endpoints."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel

from assetbook.domain.models.enums import AccrualStatus, SkipReason
from assetbook.domain.views import AccrualResult


class AccrualResultResponse(BaseModel):
    """Outcome of one accrual attempt."""

    owner_id: str
    item_id: str
    status: AccrualStatus
    skip_reason: Optional[SkipReason] = None
    net_interest: Optional[Decimal] = None
    total_value: Optional[Decimal] = None
    error: Optional[str] = None

    @classmethod
    def from_result(cls, result: AccrualResult) -> "AccrualResultResponse":
        return cls(
            owner_id=result.owner_id,
            item_id=result.item_id,
            status=result.status,
            skip_reason=result.skip_reason,
            net_interest=result.interest.net if result.interest else None,
            total_value=result.item.total_value if result.item else None,
            error=result.error,
        )


class StopAccrualResponse(BaseModel):
    stopped: bool


class StartAllResponse(BaseModel):
    started: int


class ScheduleResponse(BaseModel):
    model_config = {"from_attributes": True}

    owner_id: str
    item_id: str
    last_calculated_date: Optional[date] = None
    is_active: bool


class ScheduleListResponse(BaseModel):
    """Active schedules of one owner plus the daily driver state."""

    schedules: list[ScheduleResponse]
    count: int
    is_running: bool
    next_fire_at: Optional[datetime] = None


class MaturityWarningResponse(BaseModel):
    model_config = {"from_attributes": True}

    owner_id: str
    item_id: str
    display_name: str
    maturity_date: date
    days_left: int


class AccrualRunReportResponse(BaseModel):
    """Response schema for one daily batch."""

    run_date: date
    applied: list[AccrualResultResponse]
    skipped: list[AccrualResultResponse]
    failed: list[AccrualResultResponse]
    maturity_warnings: list[MaturityWarningResponse]
