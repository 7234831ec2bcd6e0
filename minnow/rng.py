"""A freshly seeded pseudo-random generator."""

from __future__ import annotations

import os
import random

_SEED_BYTES = 1024 * 4


def get_random_engine() -> random.Random:
    """Return a generator seeded from the operating system's entropy source."""
    return random.Random(os.urandom(_SEED_BYTES))