"""Service layer exports."""

from . import (
	aggregation_service,
	browse_service,
	histogram_service,
	histogram_store,
	steam_client,
)

__all__ = [
	"aggregation_service",
	"browse_service",
	"histogram_service",
	"histogram_store",
	"steam_client",
]
