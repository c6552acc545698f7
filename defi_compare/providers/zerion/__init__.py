"""Zerion provider."""
from .adapter import ZerionProvider

__all__ = ["ZerionProvider"]
