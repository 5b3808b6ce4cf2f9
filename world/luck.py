"""
Geocoin — world/luck.py
Deterministic luck: a pure function from a string key to [0, 1).
"""

import random


def luck(key: str) -> float:
    """
    Reproducible pseudo-random value in [0, 1) for `key`.

    random.Random seeds from a str through SHA-512, so the value is stable
    across processes regardless of PYTHONHASHSEED. Not security-grade.
    """
    return random.Random(key).random()


def luck_int(key: str, low: int, high: int) -> int:
    """Scales luck(key) onto the inclusive integer range [low, high]."""
    return low + int(luck(key) * (high - low + 1))
