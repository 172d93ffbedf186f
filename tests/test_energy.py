"""Tests for plantsim.energy — upkeep, stress, uptake and photosynthesis."""

from types import MappingProxyType

import numpy as np
import pytest

from plantsim.config import WorldSection
from plantsim.energy import (
    PHOTOSYNTHESIS_EFFICIENCY,
    SHADE_FACTOR,
    UPKEEP_PER_ORGAN,
    UPTAKE_PER_ORGAN,
    EnergyStrategy,
)
from plantsim.environment import EnvironmentGrid
from plantsim.genetics import Gene, GeneProfile
from plantsim.organs import Leaf
from plantsim.plant import Plant
from plantsim.registry import StrategyRegistry
from plantsim.rng import create_rng
from plantsim.species import SpeciesDefinition
from plantsim.strategies import SimulationContext
from plantsim.types import NutrientType

RATES = {NutrientType.NITROGEN: 0.5, NutrientType.POTASSIUM: 0.25}


def _make_plant(position=(0.5, 0.1, 0.5)) -> Plant:
    registry = StrategyRegistry()
    species = SpeciesDefinition(
        species_id='Fern',
        base_gene=GeneProfile(nutrient_uptake_rates=dict(RATES)),
        lifecycle=registry.get('Standard'),
        energy=registry.get('Photosynthesis'),
        growth=registry.get('Herbaceous'),
        reproduction=registry.get('WindDispersal'),
    )
    gene = Gene(
        growth_speed=0.2, branching_chance=0.0, leaf_size=1.0,
        flower_chance=0.0, apical_dominance=0.5, trunk_thickness=0.1,
        max_age=1000, energy_to_flower=100, seed_count=2, fruit_size=0.4,
        nutrient_uptake_rates=MappingProxyType(dict(RATES)),
        flower_color='Default', is_variegated=False,
    )
    return Plant(position, species, create_rng(0), gene=gene)


def _add_leaf(plant, height=1.0, area=1.0) -> Leaf:
    x, _, z = plant.root_position
    leaf = Leaf(
        owner=plant.id, parent=plant.root.handle,
        position=np.array([x, height, z]),
        direction=np.array([0.0, 1.0, 0.0]), area=area,
    )
    plant.add_organ(leaf)
    return leaf


def _run(plant, grid=None) -> SimulationContext:
    ctx = SimulationContext(grid=grid or EnvironmentGrid(), rng=create_rng(0))
    EnergyStrategy().execute(plant, ctx)
    return ctx


class TestUpkeep:
    def test_root_only(self):
        plant = _make_plant()
        _run(plant)
        assert plant.energy == pytest.approx(50.0 - UPKEEP_PER_ORGAN)

    def test_scales_with_organs(self):
        plant = _make_plant()
        for _ in range(4):
            _add_leaf(plant, area=0.0)
        _run(plant)
        assert plant.energy == pytest.approx(50.0 - 5 * UPKEEP_PER_ORGAN)


class TestPhotosynthesis:
    def test_unshaded_leaf(self):
        plant = _make_plant()
        _add_leaf(plant, area=1.0)
        _run(plant)
        expected = 50.0 - 2 * UPKEEP_PER_ORGAN + PHOTOSYNTHESIS_EFFICIENCY
        assert plant.energy == pytest.approx(expected)

    def test_scales_with_area_and_light(self):
        plant = _make_plant()
        _add_leaf(plant, area=2.0)
        grid = EnvironmentGrid(WorldSection(light_intensity=0.5))
        _run(plant, grid)
        expected = 50.0 - 2 * UPKEEP_PER_ORGAN + 2.0 * 0.5 * PHOTOSYNTHESIS_EFFICIENCY
        assert plant.energy == pytest.approx(expected)

    def test_dark(self):
        plant = _make_plant()
        _add_leaf(plant)
        grid = EnvironmentGrid()
        grid.light_intensity = 0.0
        _run(plant, grid)
        assert plant.energy == pytest.approx(50.0 - 2 * UPKEEP_PER_ORGAN)

    def test_shaded_leaf(self):
        plant = _make_plant()
        _add_leaf(plant, height=1.0)
        neighbour = _make_plant()
        _add_leaf(neighbour, height=5.0)
        grid = EnvironmentGrid()
        grid.build_canopy_map([plant, neighbour])
        _run(plant, grid)
        expected = (50.0 - 2 * UPKEEP_PER_ORGAN
                    + SHADE_FACTOR * PHOTOSYNTHESIS_EFFICIENCY)
        assert plant.energy == pytest.approx(expected)

    def test_gain_scaled_by_health(self):
        plant = _make_plant()
        _add_leaf(plant)
        grid = EnvironmentGrid()
        grid.moisture.fill(0.5)
        _run(plant, grid)
        expected = 50.0 - 2 * UPKEEP_PER_ORGAN + 0.5 * PHOTOSYNTHESIS_EFFICIENCY
        assert plant.energy == pytest.approx(expected)


class TestStress:
    def test_stress_penalty(self):
        plant = _make_plant()
        grid = EnvironmentGrid()
        grid.moisture.fill(0.2)
        _run(plant, grid)
        # health 0.2 < 0.3 → penalty (1 − 0.2)
        assert plant.energy == pytest.approx(50.0 - UPKEEP_PER_ORGAN - 0.8)

    def test_no_penalty_at_threshold(self):
        plant = _make_plant()
        grid = EnvironmentGrid()
        grid.moisture.fill(0.3)
        _run(plant, grid)
        assert plant.energy == pytest.approx(50.0 - UPKEEP_PER_ORGAN)

    def test_outside_soil(self):
        """Off-grid plants see 0.01 health and always pay the penalty."""
        plant = _make_plant(position=(500.0, 0.1, 500.0))
        _run(plant)
        assert plant.energy == pytest.approx(50.0 - UPKEEP_PER_ORGAN - 0.99)


class TestUptake:
    def test_depletes_root_cell(self):
        plant = _make_plant()
        for _ in range(9):
            _add_leaf(plant, area=0.0)
        grid = EnvironmentGrid()
        _run(plant, grid)
        levels = grid.nutrients_at(plant.root_position)
        amount = 10 * UPTAKE_PER_ORGAN
        assert levels[NutrientType.NITROGEN] == pytest.approx(1.0 - amount * 0.5)
        assert levels[NutrientType.POTASSIUM] == pytest.approx(1.0 - amount * 0.25)
        assert levels[NutrientType.PHOSPHORUS] == 1.0

    def test_other_cells_untouched(self):
        plant = _make_plant()
        grid = EnvironmentGrid()
        _run(plant, grid)
        assert grid.nutrients_at((20.0, 0.0, 20.0))[NutrientType.NITROGEN] == 1.0

    def test_draws_nothing(self):
        plant = _make_plant()
        ctx = _run(plant)
        assert ctx.rng.random() == create_rng(0).random()
