#!/usr/bin/env python3
"""
DeFi position comparison
Entry point: python -m defi_compare.main <command> ...
"""
from .cli import main

if __name__ == "__main__":
    main()
