"""Shared helpers with no app dependencies."""

from .geo import calculate_distance, distance_km

__all__ = [
    "calculate_distance",
    "distance_km",
]
