"""Cross-source DeFi position comparison."""

__version__ = "0.1.0"
