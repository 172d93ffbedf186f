"""Reproduction strategy: ripe fruit → queued seeds.

Runs only while Fruiting. Every fruit older than RIPE_AGE releases
gene.seed_count seeds (each conceived with a mutated gene) scattered
around the fruit at ground level. Ripe fruits are consumed and the tips
that bloomed are reactivated so growth can resume.
"""

from __future__ import annotations

from plantsim.geometry import vec3
from plantsim.organs import Fruit, Meristem
from plantsim.plant import Plant
from plantsim.strategies import SimulationContext, Strategy
from plantsim.types import PlantState, StrategyRole


RIPE_AGE: int = 50              # Fruits older than this release seeds
SEED_SPREAD: float = 3.0        # Full width of the square scatter
SEED_REST_HEIGHT: float = 0.1   # Seeds always settle at this height


class ReproductionStrategy(Strategy):
    """Fruit-borne seed dispersal."""

    role = StrategyRole.REPRODUCTION

    def execute(self, plant: Plant, ctx: SimulationContext) -> None:
        if plant.state is not PlantState.FRUITING:
            return
        ripe = [f for f in plant.organs_of(Fruit) if f.age > RIPE_AGE]
        if not ripe:
            return

        rng = ctx.rng
        for fruit in ripe:
            for _ in range(plant.gene.seed_count):
                offset = vec3(
                    (rng.random() - 0.5) * SEED_SPREAD,
                    0.0,
                    (rng.random() - 0.5) * SEED_SPREAD,
                )
                position = fruit.position + offset
                position[1] = SEED_REST_HEIGHT
                plant.queue_seed(Plant.from_parent(position, plant, rng))
        plant.remove_organs(ripe)

        for tip in plant.organs_of(Meristem):
            if not tip.is_active:
                tip.is_active = True
