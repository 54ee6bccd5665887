"""
Shared FastAPI dependencies
"""
from fastapi import Request

from jourj.services.event_store import EventStoreRegistry


def get_store_registry(request: Request) -> EventStoreRegistry:
    """Registry of open event stores, created in the app lifespan"""
    registry = getattr(request.app.state, "stores", None)
    if registry is None:
        registry = EventStoreRegistry()
        request.app.state.stores = registry
    return registry
