"""API routers exposed by the server package."""

from .v1.health import router as health_router
from .v1.observability import router as observability_router
from .v1.orders import router as orders_router
from .v1.robots import router as robots_router

__all__ = [
	"health_router",
	"observability_router",
	"orders_router",
	"robots_router",
]
