"""
Run context shared by every pipeline stage.

Holds the resolved configuration and the run seed. Stages receive the context
explicitly and derive their own generators from it, so there is no module-level
random state and no hidden coupling between stages.
"""

from dataclasses import dataclass, field

import numpy as np

from ktx_ml.config.schema import AnalysisConfig
from ktx_ml.utils.random import derive_seed, make_rng


@dataclass(frozen=True)
class RunContext:
    """Immutable configuration + seed bundle for one end-to-end run."""

    config: AnalysisConfig = field(default_factory=AnalysisConfig)
    seed: int | None = None

    @classmethod
    def from_config(cls, config: AnalysisConfig) -> "RunContext":
        return cls(config=config, seed=config.seed)

    def child_seed(self, offset: int) -> int | None:
        """Seed for a named stage; None keeps the run non-deterministic."""
        if self.seed is None:
            return None
        return derive_seed(self.seed, offset)

    def rng(self, offset: int = 0) -> np.random.Generator:
        """Fresh generator for a stage (same offset -> same stream)."""
        return make_rng(self.child_seed(offset))
