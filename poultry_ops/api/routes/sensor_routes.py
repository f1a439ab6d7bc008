"""
API routes for live sensor data, history and hydration.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from poultry_ops.core.analytics import Period
from poultry_ops.infrastructure.dependencies import (
    handle_exceptions,
    get_live_state,
    get_history_service,
    get_hydration_monitor,
    get_feeding_controller
)
from poultry_ops.core.parsing import parse_number

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/live", summary="Live sensor, alert, control and relay state")
@handle_exceptions
async def get_live_state_snapshot(
    mirror=Depends(get_live_state)
):
    """
    Last observed values of /sensors, /alerts, /controls and /deviceStates.

    Malformed readings are reported as null.
    """
    if not mirror.running:
        return mirror.refresh()
    return mirror.snapshot()


@router.get("/history", summary="Temperature and humidity history")
@handle_exceptions
async def get_history(
    period: Period = Query(Period.DAY, description="day, week or month"),
    page: Optional[int] = Query(None, ge=0, description="Zero-based page, last page when omitted"),
    service=Depends(get_history_service)
):
    """
    One page of the historical chart.

    - **day**: since local midnight, 24 points per page
    - **week**: last 7 days, 168 points per page
    - **month**: last 30 days, 720 points per page
    """
    return service.get_page(period, page=page).model_dump(mode="json")


@router.get("/hydration", summary="Today's water per bird")
@handle_exceptions
async def get_hydration(
    chicken_count: Optional[int] = Query(None, ge=0, description="Flock size, saved feeding settings when omitted"),
    monitor=Depends(get_hydration_monitor),
    feeder=Depends(get_feeding_controller)
):
    """
    Water dispensed today divided by the flock size, classified as normal,
    warning or alert.
    """
    if chicken_count is None:
        saved = parse_number(feeder.get_settings().get("chickenCount"))
        chicken_count = int(saved) if saved is not None and saved > 0 else 0

    return monitor.get_report(chicken_count)
