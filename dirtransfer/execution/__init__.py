"""
Batch execution for directory transfers
"""

from .throttled import ConcurrencySlots, ThrottledFailFastExecutor

__all__ = [
    "ConcurrencySlots",
    "ThrottledFailFastExecutor",
]
