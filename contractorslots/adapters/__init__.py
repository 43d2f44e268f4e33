"""
Adapters layer - Storage collaborators and fixture loading.
"""

from .fixture_loader import load_fixture
from .in_memory import InMemoryAvailabilityRepository

__all__ = ["InMemoryAvailabilityRepository", "load_fixture"]
