"""Growth strategy: morphogenesis while Vegetative.

Three algorithms, selected per species:
  - APICAL (trees, shrubs): every active tip extends a stem and a leaf,
    paying per tip; tips may fork a side branch
  - BASAL / ROSETTE (herbs): one leaf from the root per tick
  - VINE: the first active tip creeps mostly horizontally

Each algorithm creates nothing when energy is below its cost.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import numpy as np

from plantsim.geometry import X_AXIS, normalize, rotate, vec3
from plantsim.organs import Leaf, Meristem, Stem
from plantsim.strategies import SimulationContext, Strategy
from plantsim.types import GrowthType, PlantState, StrategyRole

if TYPE_CHECKING:
    from plantsim.plant import Plant


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

APICAL_COST: float = 10.0           # Per tip processed
BASAL_COST: float = 5.0             # Per tick
VINE_COST: float = 8.0              # Per tick

APICAL_JITTER: float = 0.4          # Horizontal jitter width (apical)
STEM_TAPER: float = 0.98            # Child stem thickness / parent stem
TRUNK_BASE_RATIO: float = 0.8       # First stem off a non-stem / trunk
BRANCH_ANGLE_JITTER: float = 0.25   # Branch angle × U[0.75, 1.25]
BRANCH_LENGTH_RATIO: float = 0.8
BRANCH_THICKNESS_RATIO: float = 0.7

LEAF_TILT_JITTER: float = 0.5       # Basal leaf direction jitter width
ROSETTE_TILT_DEG: float = 30.0      # Rosette tilt width (±15°)

VINE_HORIZONTAL_JITTER: float = 1.5
VINE_VERTICAL_JITTER: float = 0.2
VINE_TAPER: float = 0.99
VINE_LEAF_CHANCE: float = 0.5


class GrowthStrategy(Strategy):
    """Species growth habit.

    Args:
        growth_type: Algorithm variant.
        apical_dominance_factor: Upward pull added to each apical step.
        branching_angle: Mean side-branch angle (degrees).
    """

    role = StrategyRole.GROWTH

    def __init__(self, growth_type: GrowthType = GrowthType.APICAL,
                 apical_dominance_factor: float = 0.5,
                 branching_angle: float = 60.0):
        self.growth_type = growth_type
        self.apical_dominance_factor = apical_dominance_factor
        self.branching_angle = branching_angle

    def __repr__(self) -> str:
        return (f"GrowthStrategy({self.growth_type.name}, "
                f"apical_dominance_factor={self.apical_dominance_factor}, "
                f"branching_angle={self.branching_angle})")

    def execute(self, plant: "Plant", ctx: SimulationContext) -> None:
        if plant.state is not PlantState.VEGETATIVE:
            return
        if self.growth_type is GrowthType.APICAL:
            self._grow_apical(plant, ctx.rng)
        elif self.growth_type in (GrowthType.BASAL, GrowthType.ROSETTE):
            self._grow_basal(plant, ctx.rng)
        elif self.growth_type is GrowthType.VINE:
            self._grow_vine(plant, ctx.rng)

    # ── basal / rosette ──────────────────────────────────────────────

    def _grow_basal(self, plant: "Plant", rng: np.random.Generator) -> None:
        if plant.energy < BASAL_COST:
            return
        plant.energy -= BASAL_COST

        root = plant.root
        if self.growth_type is GrowthType.ROSETTE:
            tilt = (rng.random() - 0.5) * ROSETTE_TILT_DEG
        else:
            tilt = 0.0
        direction = vec3(
            (rng.random() - 0.5) * LEAF_TILT_JITTER,
            1.0,
            (rng.random() - 0.5) * LEAF_TILT_JITTER,
        )
        direction = normalize(rotate(direction, X_AXIS, tilt))
        plant.add_organ(Leaf(
            owner=plant.id, parent=root.handle,
            position=root.position.copy(), direction=direction,
            area=plant.gene.leaf_size,
        ))

    # ── apical ───────────────────────────────────────────────────────

    def _grow_apical(self, plant: "Plant", rng: np.random.Generator) -> None:
        if plant.energy < APICAL_COST:
            return
        gene = plant.gene
        tips = [m for m in plant.organs_of(Meristem) if m.is_active]

        for tip in tips:
            if plant.energy < APICAL_COST:
                break
            parent = plant.parent_of(tip)
            if parent is None:
                continue
            plant.energy -= APICAL_COST

            pull = vec3(
                (rng.random() - 0.5) * APICAL_JITTER,
                self.apical_dominance_factor,
                (rng.random() - 0.5) * APICAL_JITTER,
            )
            direction = normalize(tip.direction + pull * gene.apical_dominance)

            start = tip.position.copy()
            end = start + direction * gene.growth_speed
            if isinstance(parent, Stem):
                thickness = parent.thickness * STEM_TAPER
            else:
                thickness = gene.trunk_thickness * TRUNK_BASE_RATIO

            stem = Stem(
                owner=plant.id, parent=parent.handle,
                position=start, direction=direction,
                thickness=thickness, end_position=end,
            )
            plant.add_organ(stem)

            tip.position = end.copy()
            tip.direction = direction.copy()
            tip.parent = stem.handle

            plant.add_organ(Leaf(
                owner=plant.id, parent=stem.handle,
                position=end.copy(), direction=direction.copy(),
                area=gene.leaf_size,
            ))

            if rng.random() < gene.branching_chance:
                self._branch(plant, rng, parent.handle, start, direction, stem.thickness)

    def _branch(self, plant: "Plant", rng: np.random.Generator,
                parent_handle: Optional[int], start: np.ndarray,
                direction: np.ndarray, main_thickness: float) -> None:
        """Fork a side branch from the tip's old position."""
        axis = vec3(rng.random() - 0.5, rng.random() - 0.5, rng.random() - 0.5)
        if float(np.dot(axis, axis)) > 0.0:
            axis = normalize(axis)
        else:
            axis = X_AXIS.copy()
        angle = self.branching_angle * (
            rng.random() * 2 * BRANCH_ANGLE_JITTER + (1.0 - BRANCH_ANGLE_JITTER)
        )
        branch_dir = rotate(direction, axis, angle)
        branch_end = start + branch_dir * plant.gene.growth_speed * BRANCH_LENGTH_RATIO

        branch = Stem(
            owner=plant.id, parent=parent_handle,
            position=start.copy(), direction=branch_dir,
            thickness=main_thickness * BRANCH_THICKNESS_RATIO,
            end_position=branch_end,
        )
        plant.add_organ(branch)
        plant.add_organ(Meristem(
            owner=plant.id, parent=branch.handle,
            position=branch_end.copy(), direction=branch_dir.copy(),
        ))

    # ── vine ─────────────────────────────────────────────────────────

    def _grow_vine(self, plant: "Plant", rng: np.random.Generator) -> None:
        if plant.energy < VINE_COST:
            return
        tip = next((m for m in plant.organs_of(Meristem) if m.is_active), None)
        if tip is None:
            return
        plant.energy -= VINE_COST

        parent = plant.parent_of(tip)
        if parent is None:
            return

        gene = plant.gene
        jitter = vec3(
            (rng.random() - 0.5) * VINE_HORIZONTAL_JITTER,
            (rng.random() - 0.5) * VINE_VERTICAL_JITTER,
            (rng.random() - 0.5) * VINE_HORIZONTAL_JITTER,
        )
        direction = normalize(tip.direction + jitter)
        start = tip.position.copy()
        end = start + direction * gene.growth_speed
        if isinstance(parent, Stem):
            thickness = parent.thickness * VINE_TAPER
        else:
            thickness = gene.trunk_thickness

        stem = Stem(
            owner=plant.id, parent=parent.handle,
            position=start, direction=direction,
            thickness=thickness, end_position=end,
        )
        plant.add_organ(stem)

        tip.position = end.copy()
        tip.direction = direction.copy()
        tip.parent = stem.handle

        if rng.random() < VINE_LEAF_CHANCE:
            plant.add_organ(Leaf(
                owner=plant.id, parent=stem.handle,
                position=end.copy(), direction=direction.copy(),
                area=gene.leaf_size,
            ))
