"""
Seed derivation for reproducible runs.

Every stochastic step (train/test split, CV fold assignment) draws from its
own generator derived from the run seed, so no global RNG state is touched.
"""

import numpy as np

# Stage offsets keep per-stage streams independent of call order
SPLIT_STREAM = 0
CV_STREAM = 1000


def derive_seed(base_seed: int, offset: int = 0) -> int:
    """
    Derive a deterministic child seed.

    Args:
        base_seed: Run-level seed
        offset: Stage offset (e.g. SPLIT_STREAM, CV_STREAM + model index)

    Returns:
        Non-negative seed in [0, 2^32 - 1]
    """
    return int((int(base_seed) + int(offset)) % (2**32))


def make_rng(seed: int | None) -> np.random.Generator:
    """Create a numpy Generator (unseeded when seed is None)."""
    return np.random.default_rng(seed)
