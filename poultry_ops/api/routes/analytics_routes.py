"""
API routes for feeding and water analytics.
"""
import logging

from fastapi import APIRouter, Depends, Path, Query

from poultry_ops.core.analytics import LogSource, Period
from poultry_ops.infrastructure.dependencies import handle_exceptions, get_analytics_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{source}", summary="Feeding or water usage chart")
@handle_exceptions
async def get_analytics(
    source: LogSource = Path(..., description="feeding or water"),
    period: Period = Query(Period.DAY, description="day, week or month"),
    compare: bool = Query(False, description="Include the preceding period"),
    service=Depends(get_analytics_service)
):
    """
    Bucketed totals of /feedingLogs (grams) or /waterLogs (ml).

    - **day**: 24 hourly buckets
    - **week**: Sun..Sat
    - **month**: one bucket per day of the current month

    When no valid record exists the response has `has_data: false` and no
    points.
    """
    result = service.get_analytics(source, period, compare=compare)
    return result.model_dump(mode="json")
