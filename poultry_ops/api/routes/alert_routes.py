"""
API routes for the recent events feed.
"""
import logging

from fastapi import APIRouter, Depends, Path, Query

from poultry_ops.infrastructure.dependencies import (
    handle_exceptions,
    raise_for_result,
    get_event_log_view,
    require_login
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Recent events")
@handle_exceptions
async def get_alerts(
    window: str = Query("day", description="day, week, month or all"),
    show_all: bool = Query(False, description="Return every matching event"),
    view=Depends(get_event_log_view)
):
    """
    The last 100 events, newest first, filtered by recency window. Only the
    first 15 are returned unless show_all is set.
    """
    view.load()
    return view.view(window=window, show_all=show_all)


@router.delete("/{key}", summary="Delete an event", dependencies=[Depends(require_login)])
@handle_exceptions
async def delete_alert(
    key: str = Path(..., description="Event key"),
    view=Depends(get_event_log_view)
):
    if not view.events:
        view.load()
    result = view.delete(key)
    return raise_for_result(result, "events")
