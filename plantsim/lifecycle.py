"""Lifecycle strategy: the plant state machine.

    SEED → GERMINATING → VEGETATIVE ⇄ DORMANT
    VEGETATIVE → FLOWERING → FRUITING → VEGETATIVE

Only the current state's branch runs each tick. Death is not handled
here; Plant.check_death() runs after all four strategies.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from plantsim.geometry import UP, vec3
from plantsim.organs import Flower, Fruit, Meristem, Root, Stem
from plantsim.strategies import SimulationContext, Strategy
from plantsim.types import PlantState, StrategyRole

if TYPE_CHECKING:
    from plantsim.plant import Plant


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

GERMINATION_COST: float = 5.0
SEEDLING_HEIGHT: float = 0.2       # Length of the first stem

DORMANCY_ENERGY: float = 10.0      # Go dormant below this energy...
DORMANCY_MIN_AGE: int = 50         # ...once older than this
WAKE_ENERGY: float = 50.0          # Leave dormancy above this energy

FLOWER_COST: float = 20.0          # Per flower; a tip blooms only if energy > cost
FLOWER_MATURE_AGE: int = 20        # Flowers older than this set fruit


class LifecycleStrategy(Strategy):
    """Standard seed-to-fruit lifecycle."""

    role = StrategyRole.LIFECYCLE

    def execute(self, plant: "Plant", ctx: SimulationContext) -> None:
        state = plant.state
        if state is PlantState.SEED:
            plant.state = PlantState.GERMINATING
        elif state is PlantState.GERMINATING:
            self._germinate(plant)
        elif state is PlantState.VEGETATIVE:
            self._vegetative(plant, ctx)
        elif state is PlantState.DORMANT:
            if plant.energy > WAKE_ENERGY:
                plant.state = PlantState.VEGETATIVE
        elif state is PlantState.FLOWERING:
            self._set_fruit(plant)
        elif state is PlantState.FRUITING:
            if not any(True for _ in plant.organs_of(Fruit)):
                plant.state = PlantState.VEGETATIVE

    @staticmethod
    def _germinate(plant: "Plant") -> None:
        """Spend energy on a seedling stem topped by one active tip."""
        plant.energy -= GERMINATION_COST
        root: Root = plant.root
        start = root.position.copy()
        end = start + vec3(0.0, SEEDLING_HEIGHT, 0.0)
        stem = Stem(
            owner=plant.id, parent=root.handle,
            position=start, direction=UP.copy(),
            thickness=plant.gene.trunk_thickness, end_position=end,
        )
        plant.add_organ(stem)
        plant.add_organ(Meristem(
            owner=plant.id, parent=stem.handle,
            position=end.copy(), direction=UP.copy(),
        ))
        plant.state = PlantState.VEGETATIVE

    @staticmethod
    def _vegetative(plant: "Plant", ctx: SimulationContext) -> None:
        if plant.energy < DORMANCY_ENERGY and plant.age > DORMANCY_MIN_AGE:
            plant.state = PlantState.DORMANT

        if (plant.energy > plant.gene.energy_to_flower
                and ctx.rng.random() < plant.gene.flower_chance):
            tips = [m for m in plant.organs_of(Meristem) if m.is_active]
            for tip in tips:
                if plant.energy > FLOWER_COST:
                    plant.energy -= FLOWER_COST
                    plant.add_organ(Flower(
                        owner=plant.id, parent=tip.parent,
                        position=tip.position.copy(),
                        direction=tip.direction.copy(),
                    ))
                    tip.is_active = False
            if any(True for _ in plant.organs_of(Flower)):
                plant.state = PlantState.FLOWERING

    @staticmethod
    def _set_fruit(plant: "Plant") -> None:
        """Turn every flower past FLOWER_MATURE_AGE into a fruit."""
        mature = [f for f in plant.organs_of(Flower) if f.age > FLOWER_MATURE_AGE]
        if not mature:
            return
        for flower in mature:
            plant.add_organ(Fruit(
                owner=plant.id, parent=flower.parent,
                position=flower.position.copy(),
                direction=flower.direction.copy(),
                size=plant.gene.fruit_size,
            ))
        plant.remove_organs(mature)
        if any(True for _ in plant.organs_of(Fruit)):
            plant.state = PlantState.FRUITING
