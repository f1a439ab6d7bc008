# Avoid circular imports
__all__ = ["ServiceFactory", "get_service_factory"]


# ServiceFactory is imported on first call
def get_service_factory():
    from .factory import ServiceFactory
    return ServiceFactory()
