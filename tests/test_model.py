"""Tests for plantsim.model — the population tick loop.

Covers:
  - construction-time validation (config, catalog)
  - initialize(): seed placement and draw order
  - step(): death removal, decomposition, seed admission under the cap
  - deterministic replay and long-run invariants
"""

import logging

import numpy as np
import pytest

from plantsim.config import SimulationConfig, SimulationSection, WorldSection
from plantsim.exceptions import ConfigurationError
from plantsim.genetics import GeneProfile
from plantsim.model import SimulationLoop, TickReport, admit_seeds, population_summary
from plantsim.perf import PerfMonitor
from plantsim.plant import Plant
from plantsim.registry import StrategyRegistry
from plantsim.rng import create_rng
from plantsim.species import SpeciesCatalog, SpeciesDefinition, default_catalog
from plantsim.types import NutrientType, PlantState


def _make_species(species_id='Sedge') -> SpeciesDefinition:
    registry = StrategyRegistry()
    return SpeciesDefinition(
        species_id=species_id,
        base_gene=GeneProfile(
            growth_speed=0.1, leaf_size=0.4, flower_chance=0.0,
            trunk_thickness=0.05, max_age=400, energy_to_flower=1000,
            seed_count=2,
            nutrient_uptake_rates={NutrientType.NITROGEN: 0.1},
        ),
        lifecycle=registry.get('Standard'),
        energy=registry.get('Photosynthesis'),
        growth=registry.get('Herbaceous'),
        reproduction=registry.get('WindDispersal'),
    )


def _make_loop(max_plants=300, seed=42, rain=0.0, **sim) -> SimulationLoop:
    config = SimulationConfig(
        simulation=SimulationSection(seed=seed, max_plants=max_plants, **sim),
        world=WorldSection(rain_probability=rain),
    )
    return SimulationLoop(SpeciesCatalog([_make_species()]), config)


def _make_seeds(n, species=None, rng=None):
    species = species or _make_species()
    rng = rng or create_rng(0)
    return [Plant((float(i), 0.1, 0.0), species, rng) for i in range(n)]


# ── construction ──────────────────────────────────────────────────────

class TestConstruction:
    def test_defaults(self):
        loop = SimulationLoop(default_catalog())
        assert loop.tick == 0
        assert loop.plants == ()
        assert loop.max_plants == 300
        assert loop.grid.n_cells == 6400
        assert loop.events.maxlen == 15

    def test_empty_catalog(self):
        with pytest.raises(ConfigurationError):
            SimulationLoop(SpeciesCatalog())

    def test_invalid_catalog(self):
        registry = StrategyRegistry()
        bad = SpeciesDefinition(
            species_id='Broken', base_gene=GeneProfile(),
            lifecycle=registry.get('Standard'),
            energy=registry.get('Photosynthesis'),
            growth=registry.get('WindDispersal'),
            reproduction=registry.get('WindDispersal'),
        )
        with pytest.raises(ConfigurationError):
            SimulationLoop(SpeciesCatalog([bad]))

    def test_invalid_config(self):
        config = SimulationConfig(simulation=SimulationSection(max_plants=0))
        with pytest.raises(ConfigurationError):
            SimulationLoop(default_catalog(), config)

    def test_explicit_rng(self):
        rng = create_rng(5)
        assert SimulationLoop(default_catalog(), rng=rng).rng is rng

    def test_profile_flag_enables_perf(self):
        loop = _make_loop(profile=True)
        assert loop.perf.enabled


# ── initialize ────────────────────────────────────────────────────────

class TestInitialize:
    def test_plants_seeds(self):
        loop = SimulationLoop(default_catalog())
        loop.initialize()
        assert len(loop.plants) == 25
        for plant in loop.plants:
            x, y, z = plant.root_position
            assert plant.state is PlantState.SEED
            assert y == 0.1
            assert -40.0 <= x < 40.0
            assert -40.0 <= z < 40.0

    def test_explicit_count(self):
        loop = _make_loop()
        loop.initialize(7)
        assert len(loop.plants) == 7

    def test_capped(self):
        loop = _make_loop(max_plants=4)
        loop.initialize(10)
        assert len(loop.plants) == 4

    def test_resets(self):
        loop = _make_loop()
        loop.initialize(3)
        loop.run(2)
        loop.initialize(5)
        assert loop.tick == 0
        assert len(loop.plants) == 5

    def test_draw_order(self):
        """Species, then x, then z, then gene derivation, per seed."""
        loop = _make_loop()
        loop.initialize(1)
        rng = create_rng(42)
        rng.integers(1)
        x = (rng.random() - 0.5) * 80.0
        z = (rng.random() - 0.5) * 80.0
        np.testing.assert_allclose(loop.plants[0].root_position, [x, 0.1, z])

    def test_mixed_species(self):
        loop = SimulationLoop(default_catalog())
        loop.initialize(200)
        species = {p.species.species_id for p in loop.plants}
        assert len(species) == len(default_catalog())


# ── seed admission ────────────────────────────────────────────────────

class TestAdmitSeeds:
    def test_at_cap_admits_nothing(self):
        seeds = _make_seeds(10)
        admitted, dropped = admit_seeds(300, seeds, 300)
        assert admitted == []
        assert dropped == seeds

    def test_near_cap_admits_earliest(self):
        seeds = _make_seeds(5)
        admitted, dropped = admit_seeds(298, seeds, 300)
        assert admitted == seeds[:2]
        assert dropped == seeds[2:]

    def test_room_for_all(self):
        seeds = _make_seeds(3)
        admitted, dropped = admit_seeds(10, seeds, 300)
        assert admitted == seeds
        assert dropped == []

    def test_over_cap(self):
        admitted, dropped = admit_seeds(305, _make_seeds(2), 300)
        assert admitted == []
        assert len(dropped) == 2


class TestPopulationCap:
    def test_full_population_admits_zero(self):
        """5 live plants at a cap of 5, each queuing 2 seeds → none admitted."""
        loop = _make_loop(max_plants=5)
        loop.initialize(5)
        for plant in loop.plants:
            for seed in _make_seeds(2):
                plant.queue_seed(seed)
        report = loop.step()
        assert report.seeds_produced == 10
        assert report.seeds_admitted == 0
        assert report.seeds_dropped == 10
        assert len(loop.plants) == 5

    def test_two_free_slots_admit_two(self):
        loop = _make_loop(max_plants=7)
        loop.initialize(5)
        first = loop.plants[0]
        seeds = _make_seeds(5)
        for seed in seeds:
            first.queue_seed(seed)
        report = loop.step()
        assert report.seeds_admitted == 2
        assert report.seeds_dropped == 3
        assert loop.plants[5:] == tuple(seeds[:2])

    def test_admission_follows_plant_order(self):
        loop = _make_loop(max_plants=6)
        loop.initialize(4)
        a, b = _make_seeds(1), _make_seeds(1)
        loop.plants[2].queue_seed(b[0])
        loop.plants[0].queue_seed(a[0])
        loop.step()
        assert loop.plants[4] is a[0]
        assert loop.plants[5] is b[0]

    def test_drop_logged_at_debug(self, caplog):
        loop = _make_loop(max_plants=1)
        loop.initialize(1)
        loop.plants[0].queue_seed(_make_seeds(1)[0])
        with caplog.at_level(logging.DEBUG, logger='plantsim.model'):
            loop.step()
        assert 'dropped 1 seeds' in caplog.text

    def test_add_plant(self):
        loop = _make_loop(max_plants=1)
        assert loop.add_plant(_make_seeds(1)[0])
        assert not loop.add_plant(_make_seeds(1)[0])


# ── step ──────────────────────────────────────────────────────────────

class TestStep:
    def test_advances_tick(self):
        loop = _make_loop()
        loop.initialize(3)
        report = loop.step()
        assert isinstance(report, TickReport)
        assert report.tick == 0
        assert loop.tick == 1
        assert report.population == 3

    def test_plants_snapshot_is_immutable(self):
        loop = _make_loop()
        loop.initialize(3)
        assert isinstance(loop.plants, tuple)

    def test_dead_removed_and_decomposed(self):
        loop = _make_loop()
        loop.initialize(3)
        doomed = loop.plants[1]
        doomed.energy = -100.0
        cell = loop.grid.cell_of(doomed.root_position)
        report = loop.step()

        assert report.deaths == 1
        assert doomed not in loop.plants
        assert len(loop.plants) == 2
        i, j = loop.grid._array_index(cell)
        assert loop.grid.nutrients[NutrientType.PHOSPHORUS, i, j] == pytest.approx(1.1)

    def test_death_event_recorded(self):
        loop = _make_loop()
        loop.initialize(1)
        loop.plants[0].energy = -100.0
        loop.step()
        assert len(loop.events) == 1
        assert loop.events[0].startswith('[T:0] A Sedge died (Age: 1, Energy: ')

    def test_event_history_bounded(self):
        loop = _make_loop(event_log_size=3)
        loop.initialize(6)
        for plant in loop.plants:
            plant.energy = -100.0
        loop.step()
        assert len(loop.events) == 3

    def test_dead_parent_seeds_discarded(self):
        loop = _make_loop()
        loop.initialize(2)
        doomed = loop.plants[0]
        doomed.queue_seed(_make_seeds(1)[0])
        doomed.energy = -100.0
        report = loop.step()
        assert report.seeds_produced == 0
        assert len(loop.plants) == 1

    def test_admitted_seeds_wait_a_tick(self):
        loop = _make_loop()
        loop.initialize(1)
        seed = _make_seeds(1)[0]
        loop.plants[0].queue_seed(seed)
        loop.step()
        assert seed.age == 0
        loop.step()
        assert seed.age == 1

    def test_perf_phases(self):
        perf = PerfMonitor(enabled=True)
        loop = SimulationLoop(SpeciesCatalog([_make_species()]), perf=perf)
        loop.initialize(5)
        loop.run(3)
        stats = perf.get_stats()
        assert set(stats) == {'environment', 'canopy', 'plants', 'housekeeping'}
        assert all(s.call_count == 3 for s in stats.values())


# ── run ───────────────────────────────────────────────────────────────

class TestRun:
    def test_reports(self):
        loop = _make_loop()
        loop.initialize(4)
        reports = loop.run(5)
        assert [r.tick for r in reports] == [0, 1, 2, 3, 4]
        assert loop.tick == 5

    def test_zero_ticks(self):
        assert _make_loop().run(0) == []

    def test_deterministic_replay(self):
        def trajectory():
            loop = SimulationLoop(default_catalog(), SimulationConfig(
                simulation=SimulationSection(seed=7),
                world=WorldSection(rain_probability=0.05),
            ))
            loop.initialize(10)
            loop.run(30)
            return [(p.species.species_id, p.energy, p.organ_count, p.state)
                    for p in loop.plants]

        assert trajectory() == trajectory()

    def test_invariants_hold(self):
        loop = SimulationLoop(default_catalog(), SimulationConfig(
            simulation=SimulationSection(seed=3, max_plants=60),
            world=WorldSection(rain_probability=0.02),
        ))
        loop.initialize(20)
        for _ in range(40):
            loop.step()
            assert len(loop.plants) <= 60
            grid = loop.grid
            assert 0.0 <= grid.moisture.min() and grid.moisture.max() <= 1.0
            assert 0.0 <= grid.nutrients.min() and grid.nutrients.max() <= 1.5
            for plant in loop.plants:
                assert not plant.is_dead
                plant.check_invariants()

    def test_seedlings_establish(self):
        loop = _make_loop()
        loop.initialize(5)
        loop.run(5)
        assert all(p.state is PlantState.VEGETATIVE for p in loop.plants)
        assert all(p.organ_count > 3 for p in loop.plants)


# ── summary ───────────────────────────────────────────────────────────

class TestPopulationSummary:
    def test_empty(self):
        summary = population_summary([])
        assert summary['population'] == 0
        assert summary['mean_energy'] == 0.0

    def test_counts(self):
        loop = _make_loop()
        loop.initialize(4)
        loop.step()
        summary = loop.summary()
        assert summary['population'] == 4
        assert summary['by_state'] == {'GERMINATING': 4}
        assert summary['by_species'] == {'Sedge': 4}
        assert summary['total_organs'] == 4
        assert summary['mean_energy'] == pytest.approx(
            np.mean([p.energy for p in loop.plants])
        )
