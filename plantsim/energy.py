"""Energy strategy: the per-tick resource economy.

    energy −= organs × 0.012                          (upkeep)
    health  = grid health at the root for the species' uptake needs
    energy −= (1 − health) × 1.0       if health < 0.3 (stress)
    soil   −= own uptake rates × organs × 0.0001       (consumption)
    energy += Σ_leaves area × 0.95 × light × health × (0.25 if shaded else 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plantsim.organs import Leaf
from plantsim.strategies import SimulationContext, Strategy
from plantsim.types import StrategyRole

if TYPE_CHECKING:
    from plantsim.plant import Plant


UPKEEP_PER_ORGAN: float = 0.012
STRESS_HEALTH: float = 0.3           # Below this health, pay a stress penalty
STRESS_PENALTY: float = 1.0
UPTAKE_PER_ORGAN: float = 0.0001
PHOTOSYNTHESIS_EFFICIENCY: float = 0.95
SHADE_FACTOR: float = 0.25


class EnergyStrategy(Strategy):
    """Photosynthesis against upkeep, gated by soil health and shading."""

    role = StrategyRole.ENERGY

    def execute(self, plant: "Plant", ctx: SimulationContext) -> None:
        grid = ctx.grid
        n_organs = plant.organ_count
        root_position = plant.root_position

        plant.energy -= n_organs * UPKEEP_PER_ORGAN

        health = grid.get_health(
            root_position, plant.species.base_gene.nutrient_uptake_rates
        )
        if health < STRESS_HEALTH:
            plant.energy -= (1.0 - health) * STRESS_PENALTY

        grid.consume_nutrients(
            root_position, plant.gene.nutrient_uptake_rates,
            n_organs * UPTAKE_PER_ORGAN,
        )

        light = grid.light_intensity
        for leaf in plant.organs_of(Leaf):
            exposure = SHADE_FACTOR if grid.is_shadowed(leaf.position) else 1.0
            plant.energy += (exposure * leaf.area * PHOTOSYNTHESIS_EFFICIENCY
                             * light * health)
