"""OneKey provider."""
from .adapter import OneKeyProvider

__all__ = ["OneKeyProvider"]
