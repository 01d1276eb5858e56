"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .availability_service import AvailabilityService, AvailabilityStoreProtocol, ProjectCreation

__all__ = ["AvailabilityService", "AvailabilityStoreProtocol", "ProjectCreation"]
