"""Genetics module for PlantSim.

Two levels of genetic data:
  - GeneProfile: species/cultivar baseline template (external data)
  - Gene: per-plant instance traits, derived from a profile with noise

Core responsibilities:
  - Trait derivation: baseline × (1 + (u − 0.5) × spread)
  - Mutation at conception: re-derive from the parent's own trait values,
    with occasional bounded nudges to growth speed, leaf size, fruit size
  - Cultivar overrides on top of a species profile

Mutation deliberately re-applies the derivation spread to already-spread
parent values, so variance compounds from one generation to the next.

Every draw comes from the generator passed in; the draw order is fixed so
a seeded generator always yields the same Gene.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

import numpy as np

from plantsim.exceptions import ConfigurationError
from plantsim.types import NutrientType, parse_nutrient


# ═══════════════════════════════════════════════════════════════════════
# CONSTANTS
# ═══════════════════════════════════════════════════════════════════════

TRAIT_SPREAD: float = 0.2          # ±10% around baseline for most traits
MAX_AGE_SPREAD: float = 0.3        # ±15% around baseline for max age
DEFAULT_FLOWER_COLOR: str = "Default"

MUTATION_CHANCE: float = 0.1       # Per nudged trait, per conception
GROWTH_SPEED_NUDGE: float = 0.05   # Full width of the uniform nudge
LEAF_SIZE_NUDGE: float = 0.1
FRUIT_SIZE_NUDGE: float = 0.1
MIN_GROWTH_SPEED: float = 0.01
MIN_LEAF_SIZE: float = 0.1
MIN_FRUIT_SIZE: float = 0.1

VARIEGATED_INHERIT_CHANCE: float = 0.8   # Offspring of a variegated parent
PLAIN_VARIEGATION_CHANCE: float = 0.01   # Spontaneous variegation


# ═══════════════════════════════════════════════════════════════════════
# PROFILES AND GENES
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GeneProfile:
    """Baseline trait template for a species or cultivar.

    Frozen, with a read-only rates mapping and a color tuple, so one
    profile can be shared by every plant of a species.
    """
    growth_speed: float = 0.0
    branching_chance: float = 0.0
    leaf_size: float = 0.0
    flower_chance: float = 0.0
    apical_dominance: float = 0.0
    trunk_thickness: float = 0.0
    max_age: int = 0
    energy_to_flower: int = 0
    seed_count: int = 0
    fruit_size: float = 0.5
    nutrient_uptake_rates: Mapping[NutrientType, float] = field(
        default_factory=dict
    )
    possible_flower_colors: Tuple[str, ...] = (DEFAULT_FLOWER_COLOR,)
    variegation_chance: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'nutrient_uptake_rates',
                           MappingProxyType(dict(self.nutrient_uptake_rates)))
        object.__setattr__(self, 'possible_flower_colors',
                           tuple(self.possible_flower_colors))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GeneProfile":
        """Build a profile from parsed species data.

        Nutrient keys are nutrient names (case-insensitive).

        Raises:
            ConfigurationError: On unknown trait keys or nutrient names.
        """
        return apply_overrides(cls(), data)


@dataclass(frozen=True)
class Gene:
    """Per-plant trait set. Immutable once constructed."""
    growth_speed: float
    branching_chance: float
    leaf_size: float
    flower_chance: float
    apical_dominance: float
    trunk_thickness: float
    max_age: int
    energy_to_flower: int
    seed_count: int
    fruit_size: float
    nutrient_uptake_rates: Mapping[NutrientType, float]
    flower_color: str
    is_variegated: bool

    def mutate(self, rng: np.random.Generator) -> "Gene":
        """Offspring gene; see mutate_gene()."""
        return mutate_gene(self, rng)


# ═══════════════════════════════════════════════════════════════════════
# DERIVATION
# ═══════════════════════════════════════════════════════════════════════

def _spread(baseline: float, rng: np.random.Generator,
            spread: float = TRAIT_SPREAD) -> float:
    return baseline * (1.0 + (rng.random() - 0.5) * spread)


def derive_gene(profile: GeneProfile, rng: np.random.Generator) -> Gene:
    """Derive an instance Gene from a baseline profile.

    Each quantitative trait = baseline × (1 + (u − 0.5) × spread), with
    spread 0.3 for max age and 0.2 otherwise. Integer traits are truncated.
    Nutrient uptake rates are copied unchanged. Flower color is sampled
    uniformly from the allowed set; variegation is Bernoulli.

    Args:
        profile: Baseline template.
        rng: Simulation generator.

    Returns:
        A new Gene.
    """
    growth_speed = _spread(profile.growth_speed, rng)
    branching_chance = _spread(profile.branching_chance, rng)
    leaf_size = _spread(profile.leaf_size, rng)
    flower_chance = _spread(profile.flower_chance, rng)
    apical_dominance = _spread(profile.apical_dominance, rng)
    trunk_thickness = _spread(profile.trunk_thickness, rng)
    max_age = int(_spread(profile.max_age, rng, MAX_AGE_SPREAD))
    energy_to_flower = int(_spread(profile.energy_to_flower, rng))
    seed_count = int(_spread(profile.seed_count, rng))
    fruit_size = _spread(profile.fruit_size, rng)

    colors = profile.possible_flower_colors
    if colors:
        flower_color = colors[int(rng.integers(len(colors)))]
    else:
        flower_color = DEFAULT_FLOWER_COLOR
    is_variegated = bool(rng.random() < profile.variegation_chance)

    return Gene(
        growth_speed=growth_speed,
        branching_chance=branching_chance,
        leaf_size=leaf_size,
        flower_chance=flower_chance,
        apical_dominance=apical_dominance,
        trunk_thickness=trunk_thickness,
        max_age=max_age,
        energy_to_flower=energy_to_flower,
        seed_count=seed_count,
        fruit_size=fruit_size,
        nutrient_uptake_rates=MappingProxyType(dict(profile.nutrient_uptake_rates)),
        flower_color=flower_color,
        is_variegated=is_variegated,
    )


# ═══════════════════════════════════════════════════════════════════════
# MUTATION
# ═══════════════════════════════════════════════════════════════════════

def profile_from_gene(gene: Gene) -> GeneProfile:
    """Build a profile whose baselines are the gene's derived values."""
    return GeneProfile(
        growth_speed=gene.growth_speed,
        branching_chance=gene.branching_chance,
        leaf_size=gene.leaf_size,
        flower_chance=gene.flower_chance,
        apical_dominance=gene.apical_dominance,
        trunk_thickness=gene.trunk_thickness,
        max_age=gene.max_age,
        energy_to_flower=gene.energy_to_flower,
        seed_count=gene.seed_count,
        fruit_size=gene.fruit_size,
        nutrient_uptake_rates=gene.nutrient_uptake_rates,
        possible_flower_colors=(gene.flower_color,),
        variegation_chance=(
            VARIEGATED_INHERIT_CHANCE if gene.is_variegated
            else PLAIN_VARIEGATION_CHANCE
        ),
    )


def mutate_gene(gene: Gene, rng: np.random.Generator) -> Gene:
    """Produce an offspring Gene from a parent Gene.

    The parent's derived values become the baseline, three traits may be
    nudged (10% each, bounded below), and derive_gene() runs again on the
    result. The spread therefore compounds across generations.
    """
    nudged: Dict[str, float] = {}
    if rng.random() < MUTATION_CHANCE:
        nudged['growth_speed'] = max(
            MIN_GROWTH_SPEED,
            gene.growth_speed + (rng.random() - 0.5) * GROWTH_SPEED_NUDGE,
        )
    if rng.random() < MUTATION_CHANCE:
        nudged['leaf_size'] = max(
            MIN_LEAF_SIZE,
            gene.leaf_size + (rng.random() - 0.5) * LEAF_SIZE_NUDGE,
        )
    if rng.random() < MUTATION_CHANCE:
        nudged['fruit_size'] = max(
            MIN_FRUIT_SIZE,
            gene.fruit_size + (rng.random() - 0.5) * FRUIT_SIZE_NUDGE,
        )

    profile = dataclasses.replace(profile_from_gene(gene), **nudged)
    return derive_gene(profile, rng)


# ═══════════════════════════════════════════════════════════════════════
# CULTIVAR OVERRIDES
# ═══════════════════════════════════════════════════════════════════════

_INT_TRAITS = ('max_age', 'energy_to_flower', 'seed_count')


def _parse_rates(data: Mapping[Any, Any]) -> Dict[NutrientType, float]:
    rates: Dict[NutrientType, float] = {}
    for key, value in data.items():
        if isinstance(key, NutrientType):
            nutrient = key
        else:
            try:
                nutrient = parse_nutrient(str(key))
            except KeyError as exc:
                raise ConfigurationError(str(exc.args[0])) from None
        rates[nutrient] = float(value)
    return rates


def apply_overrides(base: GeneProfile,
                    overrides: Optional[Mapping[str, Any]]) -> GeneProfile:
    """Return `base` with the fields named in `overrides` replaced.

    Fields absent from (or None in) `overrides` keep the base value.

    Raises:
        ConfigurationError: On unknown trait names or malformed values.
    """
    if overrides is None:
        return base
    if not isinstance(overrides, Mapping):
        raise ConfigurationError(
            f"Gene data must be a mapping of trait names, "
            f"got {type(overrides).__name__}"
        )

    valid_fields = {f.name for f in dataclasses.fields(GeneProfile)}
    unknown = set(overrides) - valid_fields
    if unknown:
        raise ConfigurationError(
            f"Unknown gene trait(s): {sorted(map(str, unknown))}. "
            f"Valid traits: {sorted(valid_fields)}"
        )

    changes: Dict[str, Any] = {}
    try:
        for key, value in overrides.items():
            if value is None:
                continue
            if key == 'nutrient_uptake_rates':
                if not isinstance(value, Mapping):
                    raise ConfigurationError(
                        f"nutrient_uptake_rates must be a mapping of nutrient "
                        f"names to rates, got {type(value).__name__}"
                    )
                changes[key] = _parse_rates(value)
            elif key == 'possible_flower_colors':
                if not isinstance(value, (list, tuple)):
                    raise ConfigurationError(
                        f"possible_flower_colors must be a list of color "
                        f"names, got {type(value).__name__}"
                    )
                changes[key] = tuple(str(c) for c in value)
            elif key in _INT_TRAITS:
                changes[key] = int(value)
            else:
                changes[key] = float(value)
    except (TypeError, ValueError, AttributeError) as exc:
        if isinstance(exc, ConfigurationError):
            raise
        raise ConfigurationError(f"Malformed gene data: {exc}") from exc

    return dataclasses.replace(base, **changes)
