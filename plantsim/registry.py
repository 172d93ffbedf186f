"""Strategy registry: string keys → strategy instances.

The built-in set is closed and known at import time. A host that wants
extra behaviours registers them explicitly, before the simulation starts,
through StrategyRegistry.register(). Nothing is discovered at runtime.

Keys are case-insensitive.
"""

from __future__ import annotations

from typing import Dict, Iterator, Optional

from plantsim.energy import EnergyStrategy
from plantsim.exceptions import ConfigurationError
from plantsim.growth import GrowthStrategy
from plantsim.lifecycle import LifecycleStrategy
from plantsim.reproduction import ReproductionStrategy
from plantsim.strategies import Strategy
from plantsim.types import GrowthType, StrategyRole


def builtin_strategies() -> Dict[str, Strategy]:
    """Fresh instances of the built-in strategies, by key."""
    return {
        'Standard': LifecycleStrategy(),
        'Photosynthesis': EnergyStrategy(),
        'WindDispersal': ReproductionStrategy(),
        'Tree': GrowthStrategy(GrowthType.APICAL, apical_dominance_factor=0.7,
                               branching_angle=45.0),
        'Conifer': GrowthStrategy(GrowthType.APICAL, apical_dominance_factor=0.9,
                                  branching_angle=70.0),
        'Shrub': GrowthStrategy(GrowthType.APICAL, apical_dominance_factor=0.4,
                                branching_angle=50.0),
        'Herbaceous': GrowthStrategy(GrowthType.BASAL),
        'Vine': GrowthStrategy(GrowthType.VINE),
        'Rosette': GrowthStrategy(GrowthType.ROSETTE),
    }


class StrategyRegistry:
    """Lookup table from strategy key to a tagged strategy instance."""

    def __init__(self, include_builtins: bool = True):
        self._strategies: Dict[str, Strategy] = {}
        self._names: Dict[str, str] = {}   # folded key → key as registered
        if include_builtins:
            for key, strategy in builtin_strategies().items():
                self.register(key, strategy)

    @staticmethod
    def _fold(key: str) -> str:
        return str(key).strip().casefold()

    def register(self, key: str, strategy: Strategy,
                 replace: bool = False) -> None:
        """Add a strategy under `key`.

        Raises:
            ConfigurationError: Empty key, non-strategy object, or a
                duplicate key without replace=True.
        """
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError("strategy key must be a non-empty string")
        if not isinstance(strategy, Strategy) or not isinstance(
                getattr(strategy, 'role', None), StrategyRole):
            raise ConfigurationError(
                f"strategy '{key}' must be a Strategy with a StrategyRole, "
                f"got {type(strategy).__name__}"
            )
        folded = self._fold(key)
        if folded in self._strategies and not replace:
            raise ConfigurationError(
                f"strategy key '{key}' is already registered "
                f"(as '{self._names[folded]}')"
            )
        self._strategies[folded] = strategy
        self._names[folded] = key.strip()

    def get(self, key: Optional[str],
            role: Optional[StrategyRole] = None) -> Strategy:
        """Resolve a strategy key, optionally checking its role.

        Raises:
            ConfigurationError: Unknown key or role mismatch.
        """
        if not key or self._fold(key) not in self._strategies:
            raise ConfigurationError(
                f"Strategy with key '{key}' not found. "
                f"Known keys: {sorted(self._names.values())}"
            )
        strategy = self._strategies[self._fold(key)]
        if role is not None and strategy.role is not role:
            raise ConfigurationError(
                f"strategy '{key}' is a {strategy.role.value} strategy, "
                f"expected {role.value}"
            )
        return strategy

    def __contains__(self, key: str) -> bool:
        return bool(key) and self._fold(key) in self._strategies

    def __iter__(self) -> Iterator[str]:
        return iter(self._names.values())

    def __len__(self) -> int:
        return len(self._strategies)


def default_registry() -> StrategyRegistry:
    return StrategyRegistry()
