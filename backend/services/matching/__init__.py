"""
Driver matching and offer resolution.

This module handles:
    - Dispatching a round of offers to the best candidate drivers
    - Resolving a driver's accept/decline of an offer
"""

from .offer_builder import dispatch
from .offer_resolution import resolve_accept, resolve_decline

__all__ = [
    "dispatch",
    "resolve_accept",
    "resolve_decline",
]
