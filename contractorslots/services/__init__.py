"""
Service layer helpers that orchestrate data collaborators and domain logic.
"""

from .availability_service import (
    AvailabilityDataSource,
    AvailabilityRepository,
    AvailabilityService,
    AvailabilitySettings,
)

__all__ = [
    "AvailabilityDataSource",
    "AvailabilityRepository",
    "AvailabilityService",
    "AvailabilitySettings",
]
