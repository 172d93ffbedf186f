"""Environment grid: soil moisture, soil nutrients, canopy shading, light.

A uniform horizontal grid of square cells (edge `cell_size`) indexed by

    cell = (floor(x / cell_size), floor(z / cell_size))

Per-cell fields:
  - moisture ∈ [0, 1]: dries ×0.9995 per tick; a rare rain event resets
    every cell to 1.0 at once
  - one level per NutrientType ∈ [0, 1.5]: regenerates toward 1.0,
    depleted by uptake, enriched (up to 1.5) by decomposing plants
  - canopy height: highest leaf altitude recorded this tick; rebuilt from
    scratch each tick, never carried over

Soil fields are dense numpy arrays covering every cell with
|x|, |z| < soil_range, all pre-populated at 1.0. Lookups outside that
square read as 0 and writes there are ignored.

Light intensity is one global scalar that the host may change directly.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional, Tuple

import numpy as np

from plantsim.config import WorldSection
from plantsim.organs import Leaf
from plantsim.types import N_NUTRIENTS, NutrientType

if TYPE_CHECKING:
    from plantsim.plant import Plant

Cell = Tuple[int, int]

MIN_FACTOR: float = 0.1   # Floor for moisture and nutrient health factors
MAX_FACTOR: float = 1.0


class EnvironmentGrid:
    """Shared spatial resource field for all plants."""

    def __init__(self, world: Optional[WorldSection] = None):
        self.world = world if world is not None else WorldSection()
        self.cell_size = float(self.world.cell_size)
        self.light_intensity = float(self.world.light_intensity)

        # Cells -half..half-1 on each axis
        self._half = int(self.world.soil_range / self.cell_size)
        n = 2 * self._half
        self.moisture = np.ones((n, n), dtype=np.float64)
        self.nutrients = np.ones((N_NUTRIENTS, n, n), dtype=np.float64)
        self._canopy: Dict[Cell, float] = {}

    # ── indexing ─────────────────────────────────────────────────────

    def cell_of(self, position) -> Cell:
        """Grid cell containing a world position (x, y, z)."""
        return (
            math.floor(position[0] / self.cell_size),
            math.floor(position[2] / self.cell_size),
        )

    def _array_index(self, cell: Cell) -> Optional[Tuple[int, int]]:
        i = cell[0] + self._half
        j = cell[1] + self._half
        n = 2 * self._half
        if 0 <= i < n and 0 <= j < n:
            return i, j
        return None

    def in_soil_range(self, position) -> bool:
        return self._array_index(self.cell_of(position)) is not None

    @property
    def n_cells(self) -> int:
        return self.moisture.size

    # ── queries ──────────────────────────────────────────────────────

    def moisture_at(self, position) -> float:
        idx = self._array_index(self.cell_of(position))
        return 0.0 if idx is None else float(self.moisture[idx])

    def nutrients_at(self, position) -> Dict[NutrientType, float]:
        """Level of every nutrient at a position (0 outside the soil)."""
        idx = self._array_index(self.cell_of(position))
        if idx is None:
            return {nt: 0.0 for nt in NutrientType}
        i, j = idx
        return {nt: float(self.nutrients[nt, i, j]) for nt in NutrientType}

    def canopy_height_at(self, position) -> Optional[float]:
        """Highest leaf recorded in this cell this tick, or None."""
        return self._canopy.get(self.cell_of(position))

    def get_health(self, position,
                   required_rates: Mapping[NutrientType, float]) -> float:
        """Composite soil health at a position, in [0.01, 1.0].

        health = clamp(moisture, 0.1, 1) × clamp(min_n level_n / rate_n, 0.1, 1)

        Only nutrients with a positive required rate constrain the nutrient
        factor; with none, the nutrient factor is 1.0.
        """
        moisture = self.moisture_at(position)
        levels = self.nutrients_at(position)
        min_ratio = 1.0
        for nutrient, rate in required_rates.items():
            if rate > 0:
                min_ratio = min(min_ratio, levels[nutrient] / rate)
        moisture_factor = min(max(moisture, MIN_FACTOR), MAX_FACTOR)
        nutrient_factor = min(max(min_ratio, MIN_FACTOR), MAX_FACTOR)
        return moisture_factor * nutrient_factor

    def is_shadowed(self, position) -> bool:
        """True if this tick's canopy in the cell overtops the position.

        Shadowed iff canopy_height − shadow_tolerance > position height.
        """
        height = self.canopy_height_at(position)
        return height is not None and position[1] < height - self.world.shadow_tolerance

    # ── mutation ─────────────────────────────────────────────────────

    def update(self, rng: np.random.Generator) -> bool:
        """Advance soil fields by one tick.

        Moisture dries everywhere, then one draw decides a global rain reset.
        Nutrients regenerate as min(cap, level + δ).

        Returns:
            True if it rained this tick.
        """
        self.moisture *= self.world.drying_rate
        rained = bool(rng.random() < self.world.rain_probability)
        if rained:
            self.moisture.fill(1.0)
        np.minimum(self.world.nutrient_cap,
                   self.nutrients + self.world.nutrient_regeneration,
                   out=self.nutrients)
        return rained

    def consume_nutrients(self, position,
                          rates: Mapping[NutrientType, float],
                          amount: float) -> None:
        """Deplete each nutrient by amount × rate at a position, floored at 0."""
        idx = self._array_index(self.cell_of(position))
        if idx is None:
            return
        i, j = idx
        for nutrient, rate in rates.items():
            self.nutrients[nutrient, i, j] = max(
                0.0, self.nutrients[nutrient, i, j] - amount * rate
            )

    def return_nutrients_to_soil(self, plant: "Plant") -> None:
        """Decompose a dead plant into its root cell.

        Every nutrient gains organ_count × 0.1, capped at 1.5 (above the
        regeneration cap).
        """
        idx = self._array_index(self.cell_of(plant.root_position))
        if idx is None:
            return
        i, j = idx
        amount = plant.organ_count * self.world.decomposition_per_organ
        self.nutrients[:, i, j] = np.minimum(
            self.world.decomposition_cap, self.nutrients[:, i, j] + amount
        )

    def build_canopy_map(self, plants: Iterable["Plant"]) -> None:
        """Recompute the per-cell maximum leaf altitude from scratch."""
        self._canopy.clear()
        for plant in plants:
            if plant is None:
                continue
            for leaf in plant.organs_of(Leaf):
                cell = self.cell_of(leaf.position)
                height = float(leaf.position[1])
                current = self._canopy.get(cell)
                if current is None or height > current:
                    self._canopy[cell] = height
