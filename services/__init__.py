"""
Service layer.

Modules:
    space_data: SpaceDataService, the facade the API consumes
    container: ServiceContainer, wiring of every long-lived component
"""

__all__ = [
    "SpaceDataService",
    "ServiceContainer",
]
