"""
API routes for the operator session, theme, store connection and camera.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from poultry_ops.infrastructure.dependencies import (
    handle_exceptions,
    get_service_factory,
    get_app_context,
    get_camera_stream
)
from poultry_ops.infrastructure.exceptions import ResourceNotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    username: str = Field(..., description="Operator username")
    password: str = Field(..., description="Operator password")


class ThemeUpdate(BaseModel):
    theme: Optional[str] = Field(None, description="light or dark (switches to manual mode)")
    mode: Optional[str] = Field(None, description="auto or manual")


class CameraStart(BaseModel):
    fps: Optional[float] = Field(None, description="Snapshots per second")


@router.post("/login", summary="Log in")
@handle_exceptions
async def login(
    credentials: LoginRequest = Body(...),
    context=Depends(get_app_context)
):
    return context.login(credentials.username, credentials.password)


@router.post("/logout", summary="Log out")
@handle_exceptions
async def logout(context=Depends(get_app_context)):
    return context.logout()


@router.get("/session", summary="Current session")
@handle_exceptions
async def get_session(context=Depends(get_app_context)):
    return context.session()


@router.get("/theme", summary="Current theme")
@handle_exceptions
async def get_theme(context=Depends(get_app_context)):
    """In auto mode the theme is light from 06:00 to 17:59 and dark otherwise."""
    return context.theme()


@router.put("/theme", summary="Update the theme")
@handle_exceptions
async def update_theme(
    update: ThemeUpdate = Body(...),
    context=Depends(get_app_context)
):
    if update.theme is None and update.mode is None:
        raise ValidationError(message="Provide a theme or a mode")

    result = context.theme()
    if update.mode is not None:
        result = context.set_theme_mode(update.mode)
    if update.theme is not None:
        result = context.set_theme(update.theme)
    return result


@router.post("/theme/toggle", summary="Switch between light and dark")
@handle_exceptions
async def toggle_theme(context=Depends(get_app_context)):
    return context.toggle_theme()


@router.post("/reconnect", summary="Retry the store connections")
@handle_exceptions
async def reconnect(factory=Depends(get_service_factory)):
    connected = await run_in_threadpool(factory.reconnect)
    content = {
        "success": connected,
        "message": "Connected" if connected else "Realtime database unavailable",
        "connections": factory.connection_status()
    }
    if not connected:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=content)
    return content


@router.get("/camera", summary="Camera stream status")
@handle_exceptions
async def get_camera_status(camera=Depends(get_camera_stream)):
    return camera.get_status()


@router.get("/camera/frame", summary="Last camera frame")
@handle_exceptions
async def get_camera_frame(camera=Depends(get_camera_stream)):
    if camera.last_frame is None:
        raise ResourceNotFoundError(message="No camera frame captured yet", resource_type="camera_frame")
    return Response(content=camera.last_frame, media_type="image/jpeg")


@router.post("/camera/{action}", summary="Start or stop the camera stream")
@handle_exceptions
async def control_camera(
    action: str = Path(..., description="start or stop"),
    options: Optional[CameraStart] = Body(None),
    camera=Depends(get_camera_stream)
):
    if action not in ("start", "stop"):
        raise ValidationError(
            message=f"Invalid action: {action}. Valid actions: 'start' or 'stop'",
            field="action"
        )

    if action == "start":
        return camera.start(fps=options.fps if options else None)
    return await run_in_threadpool(camera.stop)
