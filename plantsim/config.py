"""Configuration system for PlantSim.

Layered YAML configuration with deep-merge support:
  base.yaml → override file → in-memory overrides (e.g. parameter sweeps)

Sections map 1:1 to YAML top-level keys. Unknown keys inside a section
are ignored; invalid values raise ConfigurationError before any tick runs.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from plantsim.exceptions import ConfigurationError


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Population management and run control."""
    seed: int = 42
    initial_seed_count: int = 25     # Seeds planted by initialize()
    max_plants: int = 300            # Population cap; excess seeds are dropped
    event_log_size: int = 15         # Most recent event lines kept in memory
    profile: bool = False            # Enable PerfMonitor component timing


@dataclass
class WorldSection:
    """Environment grid: soil fields, weather and light."""
    soil_range: float = 80.0             # Soil pre-populated for |x|, |z| < range
    cell_size: float = 2.0               # Grid cell edge length (world units)
    light_intensity: float = 1.0         # Global light scalar (UI may adjust)
    drying_rate: float = 0.9995          # Per-tick moisture multiplier
    rain_probability: float = 0.0025     # Per-tick chance of a global rain reset
    nutrient_regeneration: float = 0.00008   # Per-tick nutrient increment
    nutrient_cap: float = 1.0            # Ceiling for regeneration
    decomposition_per_organ: float = 0.1     # Nutrient returned per organ on death
    decomposition_cap: float = 1.5       # Ceiling for decomposition enrichment
    shadow_tolerance: float = 0.1        # Height margin for canopy shading


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    world: WorldSection = field(default_factory=WorldSection)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    section_map = {
        'simulation': SimulationSection,
        'world': WorldSection,
    }
    sections = {}
    for key, cls in section_map.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
    return SimulationConfig(**sections)


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints.

    Raises:
        ConfigurationError: On the first violated constraint.
    """
    sim = config.simulation
    if sim.seed < 0:
        raise ConfigurationError("simulation.seed must be non-negative")
    if sim.initial_seed_count < 0:
        raise ConfigurationError(
            f"simulation.initial_seed_count must be >= 0, got {sim.initial_seed_count}"
        )
    if sim.max_plants < 1:
        raise ConfigurationError(
            f"simulation.max_plants must be >= 1, got {sim.max_plants}"
        )
    if sim.event_log_size < 1:
        raise ConfigurationError(
            f"simulation.event_log_size must be >= 1, got {sim.event_log_size}"
        )

    w = config.world
    if w.soil_range <= 0:
        raise ConfigurationError("world.soil_range must be positive")
    if w.cell_size <= 0:
        raise ConfigurationError("world.cell_size must be positive")
    if w.light_intensity < 0:
        raise ConfigurationError("world.light_intensity must be non-negative")
    if not (0.0 < w.drying_rate <= 1.0):
        raise ConfigurationError(
            f"world.drying_rate must be in (0, 1], got {w.drying_rate}"
        )
    if not (0.0 <= w.rain_probability <= 1.0):
        raise ConfigurationError(
            f"world.rain_probability must be in [0, 1], got {w.rain_probability}"
        )
    if w.nutrient_regeneration < 0:
        raise ConfigurationError("world.nutrient_regeneration must be non-negative")
    if not (0.0 < w.nutrient_cap <= w.decomposition_cap):
        raise ConfigurationError(
            f"world caps must satisfy 0 < nutrient_cap ({w.nutrient_cap}) "
            f"<= decomposition_cap ({w.decomposition_cap})"
        )
    if w.decomposition_per_organ < 0:
        raise ConfigurationError("world.decomposition_per_organ must be non-negative")
    if w.shadow_tolerance < 0:
        raise ConfigurationError("world.shadow_tolerance must be non-negative")


def load_config(
    base_path: Union[str, Path],
    override_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge layered YAML configuration.

    Merge order: base → override file → in-memory overrides.
    Each layer overrides only the fields it specifies.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ConfigurationError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if override_path is not None:
        override_path = Path(override_path)
        if override_path.exists():
            with open(override_path) as f:
                deep_merge(config_dict, yaml.safe_load(f) or {})

    if overrides is not None:
        deep_merge(config_dict, overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return a SimulationConfig with all default values."""
    config = SimulationConfig()
    validate_config(config)
    return config
