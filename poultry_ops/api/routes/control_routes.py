"""
API routes for the feeder, the water pump, the relays and the schedules.
"""
import logging
from typing import Dict, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, Field

from poultry_ops.infrastructure.dependencies import (
    handle_exceptions,
    raise_for_result,
    get_feeding_controller,
    get_water_controller,
    get_actuator_controller,
    get_schedule_manager,
    get_analytics_service
)

logger = logging.getLogger(__name__)

router = APIRouter()


class FeedRequest(BaseModel):
    age_group: str = Field(..., description="chick, grower or adult")
    chicken_count: int = Field(..., ge=0, description="Number of birds")
    grams: Optional[float] = Field(None, description="Custom amount, recommended amount when omitted")


class WaterRequest(BaseModel):
    ml: float = Field(..., description="Volume to dispense (ml)")
    flow_rate: Optional[float] = Field(None, description="Pump flow rate (ml/s), saved rate when omitted")


class WaterSettingsUpdate(BaseModel):
    flow_rate: Optional[float] = Field(None, description="Pump flow rate (ml/s)")
    fill_duration: Optional[float] = Field(None, description="Manual fill duration (seconds)")
    auto_enabled: Optional[bool] = Field(None, description="Automatic water schedule on/off")


class StateRequest(BaseModel):
    state: Optional[bool] = Field(None, description="Desired state, toggles when omitted")


class ScheduleUpdate(BaseModel):
    hours: Dict[int, bool] = Field(..., description="Hour (0-23) -> enabled")


@router.post("/feed", summary="Dispense feed")
@handle_exceptions
async def dispense_feed(
    request: FeedRequest = Body(...),
    controller=Depends(get_feeding_controller),
    analytics=Depends(get_analytics_service)
):
    """
    Dispense the recommended daily amount for the flock, or a custom amount.

    The servo opens for grams x 0.02 seconds. A second request while a
    feeding is running is rejected with 409.
    """
    result = await run_in_threadpool(
        controller.dispense, request.age_group, request.chicken_count, request.grams
    )
    raise_for_result(result, "feeder")
    analytics.invalidate("feeding")
    return result


@router.get("/feed/settings", summary="Last feeding settings")
@handle_exceptions
async def get_feeding_settings(
    controller=Depends(get_feeding_controller)
):
    return controller.get_settings()


@router.get("/recommendations", summary="Daily feed and water per age group")
@handle_exceptions
async def get_recommendations(
    chicken_count: int = Query(..., ge=0, description="Number of birds"),
    feeder=Depends(get_feeding_controller),
    water=Depends(get_water_controller)
):
    """
    Recommended daily feed and water for the flock in each age group, with
    the servo and pump times they take at the saved flow rate.
    """
    labels = feeder.config.get('calibration.age_group_labels', {})
    flow_rate = water.get_settings()["flowRate"]

    age_groups = []
    for age_group in feeder.feeding_rates:
        grams = feeder.calculate_recommended_grams(age_group, chicken_count)
        ml = water.calculate_recommended_water(age_group, chicken_count)
        age_groups.append({
            "age_group": age_group,
            "label": labels.get(age_group, age_group),
            "grams": grams,
            "servo_open_time": feeder.calculate_servo_open_time(grams),
            "ml": ml,
            "pump_run_time": water.calculate_pump_run_time(ml, flow_rate)
        })

    return {"chicken_count": chicken_count, "flow_rate": flow_rate, "age_groups": age_groups}


@router.post("/water", summary="Dispense water")
@handle_exceptions
async def dispense_water(
    request: WaterRequest = Body(...),
    controller=Depends(get_water_controller),
    analytics=Depends(get_analytics_service)
):
    """
    Run the pump for ml / flow rate seconds. A zero or negative flow rate is
    rejected with 400.
    """
    result = await run_in_threadpool(controller.dispense, request.ml, request.flow_rate)
    raise_for_result(result, "water_pump")
    analytics.invalidate("water")
    return result


@router.post("/water/fill", summary="Trigger a manual water fill")
@handle_exceptions
async def trigger_water_fill(
    controller=Depends(get_water_controller)
):
    result = await run_in_threadpool(controller.trigger_manual_fill)
    return raise_for_result(result, "water_pump")


@router.get("/water/settings", summary="Water settings")
@handle_exceptions
async def get_water_settings(
    controller=Depends(get_water_controller)
):
    return controller.get_settings()


@router.put("/water/settings", summary="Update water settings")
@handle_exceptions
async def update_water_settings(
    update: WaterSettingsUpdate = Body(...),
    controller=Depends(get_water_controller)
):
    result = controller.update_settings(
        flow_rate=update.flow_rate,
        fill_duration=update.fill_duration,
        auto_enabled=update.auto_enabled
    )
    return raise_for_result(result, "water_pump")


@router.get("/actuators", summary="Actual relay states")
@handle_exceptions
async def get_actuator_states(
    controller=Depends(get_actuator_controller)
):
    return {
        "actuators": controller.get_states(),
        "automation_enabled": controller.get_automation()
    }


@router.post("/actuators/{name}", summary="Switch the fan, heat lamp or pump")
@handle_exceptions
async def set_actuator(
    name: str = Path(..., description="fan, heat or pump"),
    request: Optional[StateRequest] = Body(None),
    controller=Depends(get_actuator_controller)
):
    result = controller.set_actuator(name, request.state if request else None)
    return raise_for_result(result, name)


@router.post("/automation", summary="Enable or disable automatic control")
@handle_exceptions
async def set_automation(
    request: Optional[StateRequest] = Body(None),
    controller=Depends(get_actuator_controller)
):
    result = controller.set_automation(request.state if request else None)
    return raise_for_result(result, "automation")


@router.get("/schedules/{kind}", summary="Hourly schedule")
@handle_exceptions
async def get_schedule(
    kind: str = Path(..., description="feeding or water"),
    manager=Depends(get_schedule_manager)
):
    return {
        "kind": kind,
        "schedule": manager.get_schedule(kind),
        "enabled_hours": manager.enabled_hours(kind)
    }


@router.put("/schedules/{kind}", summary="Update an hourly schedule")
@handle_exceptions
async def update_schedule(
    kind: str = Path(..., description="feeding or water"),
    update: ScheduleUpdate = Body(...),
    manager=Depends(get_schedule_manager)
):
    result = manager.replace_schedule(kind, update.hours)
    return raise_for_result(result, f"{kind}_schedule")


@router.post("/schedules/{kind}/{hour}/toggle", summary="Toggle one hour of a schedule")
@handle_exceptions
async def toggle_schedule_hour(
    kind: str = Path(..., description="feeding or water"),
    hour: int = Path(..., ge=0, le=23),
    manager=Depends(get_schedule_manager)
):
    result = manager.toggle_hour(kind, hour)
    return raise_for_result(result, f"{kind}_schedule")
