"""Fetch layer: retrying HTTP client and per-network fan-out."""
from .client import FetchRequest, RetryingFetchClient, RetryPolicy
from .orchestrator import FetchOrchestrator

__all__ = ["FetchOrchestrator", "FetchRequest", "RetryingFetchClient", "RetryPolicy"]
