"""Small shared helpers."""
from .timeit import Timing, timeit

__all__ = ["Timing", "timeit"]
