"""Strategy interface and the per-tick context passed to every strategy.

A strategy is one of the four per-tick behaviours (StrategyRole). It reads
and mutates a Plant (and, for Energy, the shared EnvironmentGrid); all
randomness comes from the context's generator.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Sequence

import numpy as np

from plantsim.types import StrategyRole

if TYPE_CHECKING:
    from plantsim.environment import EnvironmentGrid
    from plantsim.plant import Plant

logger = logging.getLogger(__name__)


@dataclass
class SimulationContext:
    """Everything a strategy may read for one tick.

    `plants` is a read-only snapshot of the population at the start of the
    tick; strategies must not add or remove plants from it.
    """
    grid: "EnvironmentGrid"
    rng: np.random.Generator
    tick: int = 0
    plants: Sequence["Plant"] = ()
    event_sink: Optional[Callable[[str], None]] = field(default=None, repr=False)

    def log_event(self, message: str) -> None:
        """Record an informational simulation event for this tick."""
        line = f"[T:{self.tick}] {message}"
        logger.info(line)
        if self.event_sink is not None:
            self.event_sink(line)


class Strategy(ABC):
    """One per-tick plant behaviour."""

    role: StrategyRole

    @abstractmethod
    def execute(self, plant: "Plant", ctx: SimulationContext) -> None:
        """Apply this behaviour to one plant for one tick."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
