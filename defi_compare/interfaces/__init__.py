"""Protocol interfaces for the position comparison service."""
from .provider import DefiDataProvider

__all__ = ["DefiDataProvider"]
