"""Movie Night Planner backend service."""

__version__ = "1.0.0"
