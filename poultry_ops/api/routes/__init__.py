"""
Registration of every API router.
"""
from fastapi import Depends


def register_routes(app):
    """
    Register the API routers with the FastAPI app.

    Control routes require a logged-in operator.

    Args:
        app: FastAPI application
    """
    # Imported here to avoid circular imports
    from poultry_ops.infrastructure.dependencies import require_login
    from .sensor_routes import router as sensor_router
    from .control_routes import router as control_router
    from .analytics_routes import router as analytics_router
    from .alert_routes import router as alert_router
    from .system_routes import router as system_router

    app.include_router(sensor_router, prefix="/api/sensors", tags=["sensors"])
    app.include_router(
        control_router,
        prefix="/api/control",
        tags=["control"],
        dependencies=[Depends(require_login)]
    )
    app.include_router(analytics_router, prefix="/api/analytics", tags=["analytics"])
    app.include_router(alert_router, prefix="/api/alerts", tags=["alerts"])
    app.include_router(system_router, prefix="/api/system", tags=["system"])
