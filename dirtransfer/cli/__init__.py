# ============================================
# FILE: dirtransfer/cli/__init__.py
# ============================================
"""
CLI module for dirtransfer.

    dirtransfer download my-bucket docs/ ./docs --concurrent
    dirtransfer upload ./docs my-bucket --key-prefix docs/

Install:
    pip install dirtransfer[cli]
"""

from dirtransfer.cli.main import main

__all__ = ["main"]
