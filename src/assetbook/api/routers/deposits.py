"""Deposit accrual scheduling endpoints."""

from fastapi import APIRouter, Depends

from assetbook.api.deps import get_scheduler
from assetbook.api.schemas.accrual import (
    AccrualResultResponse,
    AccrualRunReportResponse,
    MaturityWarningResponse,
    ScheduleListResponse,
    ScheduleResponse,
    StartAllResponse,
    StopAccrualResponse,
)
from assetbook.services import AccrualScheduler

router = APIRouter(prefix="/deposits", tags=["deposits"])


@router.post("/run", response_model=AccrualRunReportResponse)
def run_daily(scheduler: AccrualScheduler = Depends(get_scheduler)):
    """Run the daily accrual batch now for every active schedule."""
    report = scheduler.run_daily()
    return AccrualRunReportResponse(
        run_date=report.run_date,
        applied=[AccrualResultResponse.from_result(r) for r in report.applied],
        skipped=[AccrualResultResponse.from_result(r) for r in report.skipped],
        failed=[AccrualResultResponse.from_result(r) for r in report.failed],
        maturity_warnings=[
            MaturityWarningResponse.model_validate(w) for w in report.maturity_warnings
        ],
    )


@router.post("/{owner_id}/accrual/start-all", response_model=StartAllResponse)
def start_all(owner_id: str, scheduler: AccrualScheduler = Depends(get_scheduler)):
    """Start daily accrual for every deposit of the owner that has terms."""
    return StartAllResponse(started=scheduler.start_all(owner_id))


@router.get("/{owner_id}/schedules", response_model=ScheduleListResponse)
def list_schedules(owner_id: str, scheduler: AccrualScheduler = Depends(get_scheduler)):
    schedules = scheduler.active_schedules(owner_id)
    return ScheduleListResponse(
        schedules=[ScheduleResponse.model_validate(s) for s in schedules],
        count=len(schedules),
        is_running=scheduler.is_running,
        next_fire_at=scheduler.next_fire_at,
    )


@router.post("/{owner_id}/{item_id}/accrual", response_model=AccrualResultResponse)
def start_accrual(
    owner_id: str,
    item_id: str,
    scheduler: AccrualScheduler = Depends(get_scheduler),
):
    """Register a deposit for daily accrual and accrue today."""
    return AccrualResultResponse.from_result(scheduler.start(owner_id, item_id))


@router.delete("/{owner_id}/{item_id}/accrual", response_model=StopAccrualResponse)
def stop_accrual(
    owner_id: str,
    item_id: str,
    scheduler: AccrualScheduler = Depends(get_scheduler),
):
    return StopAccrualResponse(stopped=scheduler.stop(owner_id, item_id))


@router.post("/{owner_id}/{item_id}/accrual/run", response_model=AccrualResultResponse)
def accrue_now(
    owner_id: str,
    item_id: str,
    scheduler: AccrualScheduler = Depends(get_scheduler),
):
    """Accrue one scheduled deposit for today (no-op if already done)."""
    return AccrualResultResponse.from_result(scheduler.accrue_now(owner_id, item_id))
