"""Population tick loop.

One SimulationLoop owns the plant population and the EnvironmentGrid and
advances both one tick at a time:

  1. grid.update(): drying, rain, nutrient regeneration
  2. grid.build_canopy_map(): from every live plant's leaves
  3. for each plant, in population order:
       Lifecycle → Energy → Growth → Reproduction → death check
  4. remove the dead, returning their nutrients to the soil
  5. harvest queued seeds from the survivors, admit up to max_plants
  6. tick += 1

The population list is only mutated in steps 4 and 5, after the per-plant
loop has finished. All randomness comes from the loop's single generator.
"""

from __future__ import annotations

import logging
from collections import Counter, deque
from dataclasses import dataclass
from typing import Deque, Dict, List, Optional, Sequence, Tuple

import numpy as np

from plantsim.config import SimulationConfig, default_config, validate_config
from plantsim.environment import EnvironmentGrid
from plantsim.perf import (
    PHASE_CANOPY, PHASE_ENVIRONMENT, PHASE_HOUSEKEEPING, PHASE_PLANTS,
    PerfMonitor,
)
from plantsim.plant import Plant
from plantsim.rng import create_rng
from plantsim.species import SpeciesCatalog
from plantsim.strategies import SimulationContext

logger = logging.getLogger(__name__)

INITIAL_SEED_HEIGHT: float = 0.1


@dataclass
class TickReport:
    """What happened during one tick."""
    tick: int
    population: int          # After removals and admissions
    deaths: int = 0
    seeds_produced: int = 0
    seeds_admitted: int = 0
    seeds_dropped: int = 0
    rained: bool = False


def admit_seeds(population_size: int, seeds: Sequence[Plant],
                cap: int) -> Tuple[List[Plant], List[Plant]]:
    """Split seeds into (admitted, dropped) under a population cap.

    Seeds are admitted in the order given until population_size + admitted
    reaches cap; the rest are dropped, not deferred.
    """
    room = max(0, cap - population_size)
    return list(seeds[:room]), list(seeds[room:])


def population_summary(plants: Sequence[Plant]) -> dict:
    """Counts per state and species, mean energy and total organ count."""
    n = len(plants)
    return {
        'population': n,
        'by_state': dict(Counter(p.state.name for p in plants)),
        'by_species': dict(Counter(p.species.species_id for p in plants)),
        'mean_energy': float(np.mean([p.energy for p in plants])) if n else 0.0,
        'total_organs': sum(p.organ_count for p in plants),
    }


class SimulationLoop:
    """Plant population plus shared environment, advanced tick by tick.

    Args:
        catalog: Species to draw initial seeds from. Validated here.
        config: Simulation configuration (defaults if None).
        rng: Generator for every random draw; created from
            config.simulation.seed if None.
        perf: Optional phase timing.

    Raises:
        ConfigurationError: If the config or catalog is invalid.
    """

    def __init__(self, catalog: SpeciesCatalog,
                 config: Optional[SimulationConfig] = None,
                 rng: Optional[np.random.Generator] = None,
                 perf: Optional[PerfMonitor] = None):
        if config is None:
            config = default_config()
        validate_config(config)
        catalog.validate()

        self.catalog = catalog
        self.config = config
        self.rng = rng if rng is not None else create_rng(config.simulation.seed)
        self.perf = perf if perf is not None else PerfMonitor(
            enabled=config.simulation.profile
        )
        self.grid = EnvironmentGrid(config.world)
        self.events: Deque[str] = deque(maxlen=config.simulation.event_log_size)
        self.tick: int = 0
        self._plants: List[Plant] = []

    @property
    def plants(self) -> Tuple[Plant, ...]:
        """Read-only snapshot of the current population."""
        return tuple(self._plants)

    @property
    def max_plants(self) -> int:
        return self.config.simulation.max_plants

    def add_plant(self, plant: Plant) -> bool:
        """Add a plant if the population is below the cap."""
        if len(self._plants) >= self.max_plants:
            return False
        self._plants.append(plant)
        return True

    def initialize(self, initial_seed_count: Optional[int] = None) -> None:
        """Clear the population and plant a fresh batch of seeds."""
        if initial_seed_count is None:
            initial_seed_count = self.config.simulation.initial_seed_count
        self._plants.clear()
        self.tick = 0

        spread = self.config.world.soil_range
        for _ in range(min(initial_seed_count, self.max_plants)):
            species = self.catalog.get_random_definition(self.rng)
            x = (self.rng.random() - 0.5) * spread
            z = (self.rng.random() - 0.5) * spread
            self._plants.append(
                Plant((x, INITIAL_SEED_HEIGHT, z), species, self.rng)
            )
        logger.info("planted %d seeds from %d species",
                    len(self._plants), len(self.catalog))

    def _record_event(self, line: str) -> None:
        self.events.append(line)

    def step(self) -> TickReport:
        """Advance the simulation by one tick."""
        perf = self.perf

        with perf.track(PHASE_ENVIRONMENT):
            rained = self.grid.update(self.rng)
        if rained:
            logger.debug("[T:%d] rain", self.tick)

        with perf.track(PHASE_CANOPY):
            self.grid.build_canopy_map(self._plants)

        ctx = SimulationContext(
            grid=self.grid, rng=self.rng, tick=self.tick,
            plants=self.plants, event_sink=self._record_event,
        )
        with perf.track(PHASE_PLANTS):
            for plant in self._plants:
                plant.update(ctx)

        with perf.track(PHASE_HOUSEKEEPING):
            survivors: List[Plant] = []
            deaths = 0
            for plant in self._plants:
                if plant.is_dead:
                    deaths += 1
                    self.grid.return_nutrients_to_soil(plant)
                else:
                    survivors.append(plant)
            self._plants = survivors

            seeds: List[Plant] = []
            for plant in self._plants:
                seeds.extend(plant.harvest_seeds())
            admitted, dropped = admit_seeds(len(self._plants), seeds,
                                            self.max_plants)
            self._plants.extend(admitted)
            if dropped:
                logger.debug("[T:%d] population cap %d reached, dropped %d seeds",
                             self.tick, self.max_plants, len(dropped))

        report = TickReport(
            tick=self.tick,
            population=len(self._plants),
            deaths=deaths,
            seeds_produced=len(seeds),
            seeds_admitted=len(admitted),
            seeds_dropped=len(dropped),
            rained=rained,
        )
        self.tick += 1
        return report

    def run(self, n_ticks: int) -> List[TickReport]:
        """Advance n_ticks ticks and return one report per tick."""
        reports = [self.step() for _ in range(n_ticks)]
        if reports:
            last = reports[-1]
            logger.info("ran %d ticks, population %d at tick %d",
                        n_ticks, last.population, last.tick)
        return reports

    def summary(self) -> Dict[str, object]:
        return population_summary(self._plants)
