"""
Train/test split shared by every candidate model.

One split is generated per run and frozen; all models are trained and
compared on the same index sets.
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from sklearn.model_selection import train_test_split

from ktx_ml.data.schema import ID_COL, TEST_SPLIT, TRAIN_SPLIT

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Split:
    """Disjoint train/test sample indices (read-only arrays)."""

    train_idx: np.ndarray
    test_idx: np.ndarray

    def __post_init__(self):
        overlap = np.intersect1d(self.train_idx, self.test_idx)
        if overlap.size > 0:
            raise ValueError(f"Train and test indices overlap ({overlap.size} samples)")
        for arr in (self.train_idx, self.test_idx):
            arr.setflags(write=False)

    @property
    def n_train(self) -> int:
        return int(self.train_idx.size)

    @property
    def n_test(self) -> int:
        return int(self.test_idx.size)

    def to_frame(self, sample_ids: np.ndarray) -> pd.DataFrame:
        """Long-format membership table (sample id, split)."""
        rows = [(sample_ids[i], TRAIN_SPLIT) for i in self.train_idx]
        rows += [(sample_ids[i], TEST_SPLIT) for i in self.test_idx]
        df = pd.DataFrame(rows, columns=[ID_COL, "split"])
        return df.sort_values(ID_COL, kind="stable").reset_index(drop=True)


def make_train_test_split(
    y: np.ndarray,
    test_size: float = 0.30,
    seed: int | None = None,
    stratify: bool = False,
) -> Split:
    """
    Randomly partition sample indices into train and test sets.

    Args:
        y: Binary labels (used only when stratify=True)
        test_size: Fraction of samples held out for testing
        seed: Random seed (None = non-deterministic)
        stratify: Preserve class proportions in both partitions

    Returns:
        Split with sorted, read-only index arrays

    Raises:
        ValueError: If either partition would be empty
    """
    y = np.asarray(y).astype(int)
    indices = np.arange(len(y))

    train_idx, test_idx = train_test_split(
        indices,
        test_size=test_size,
        random_state=seed,
        shuffle=True,
        stratify=y if stratify else None,
    )

    split = Split(train_idx=np.sort(train_idx), test_idx=np.sort(test_idx))
    logger.info(
        f"Split: train={split.n_train} (pos={int(y[split.train_idx].sum())}), "
        f"test={split.n_test} (pos={int(y[split.test_idx].sum())})"
    )
    for name, idx in ((TRAIN_SPLIT, split.train_idx), (TEST_SPLIT, split.test_idx)):
        if np.unique(y[idx]).size < 2:
            logger.warning(f"{name} partition contains a single class; AUC will be undefined")

    return split
