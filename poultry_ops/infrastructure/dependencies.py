"""
FastAPI dependencies.
"""
import functools
import logging
from typing import Any, Callable, Dict

from fastapi import Depends, HTTPException, Request, status

from poultry_ops.infrastructure import get_service_factory as factory_getter
from poultry_ops.infrastructure.exceptions import (
    BaseServiceException,
    exception_from_result,
    service_exception_handler
)

logger = logging.getLogger(__name__)


async def get_service_factory(request: Request) -> Any:
    """
    Dependency returning the ServiceFactory.

    Args:
        request: FastAPI request

    Returns:
        ServiceFactory instance
    """
    return factory_getter()


async def get_app_context(request: Request):
    return factory_getter().create_app_context()


async def require_login(context=Depends(get_app_context)) -> None:
    """
    Dependency rejecting requests while no operator is logged in.

    Raises:
        HTTPException: 401 when the session is not authenticated
    """
    try:
        context.require_auth()
    except BaseServiceException as exc:
        raise service_exception_handler(exc)


async def get_live_state(request: Request):
    return factory_getter().create_live_state_mirror()


async def get_feeding_controller(request: Request):
    return factory_getter().create_feeding_controller()


async def get_water_controller(request: Request):
    return factory_getter().create_water_controller()


async def get_actuator_controller(request: Request):
    return factory_getter().create_actuator_controller()


async def get_schedule_manager(request: Request):
    return factory_getter().create_schedule_manager()


async def get_event_log_view(request: Request):
    return factory_getter().create_event_log_view()


async def get_hydration_monitor(request: Request):
    return factory_getter().create_hydration_monitor()


async def get_history_service(request: Request):
    return factory_getter().create_history_service()


async def get_analytics_service(request: Request):
    return factory_getter().create_analytics_service()


async def get_camera_stream(request: Request):
    return factory_getter().create_camera_stream()


def raise_for_result(result: Dict[str, Any], actuator_type: str) -> Dict[str, Any]:
    """
    Return a successful controller result, raise the matching exception otherwise.
    """
    if not result.get("success", False):
        raise exception_from_result(result, actuator_type)
    return result


def handle_exceptions(func: Callable) -> Callable:
    """
    Decorator converting service exceptions into HTTP errors.

    Args:
        func: Route coroutine to wrap

    Returns:
        The wrapped coroutine
    """
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except BaseServiceException as exc:
            logger.error(f"Service exception: {exc.message}", exc_info=exc.error_code not in (
                "guard_violation", "validation_error", "authentication_error", "resource_not_found"
            ))
            raise service_exception_handler(exc)
        except HTTPException:
            raise
        except Exception as exc:
            logger.error(f"Unexpected error: {str(exc)}", exc_info=True)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail={
                    "message": "An unexpected error occurred",
                    "error": str(exc)
                }
            )

    return wrapper
