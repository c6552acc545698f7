"""Upstream position providers."""
from .onekey import OneKeyProvider
from .zerion import ZerionProvider

__all__ = ["OneKeyProvider", "ZerionProvider"]
