"""Species definitions and the species catalog.

A SpeciesDefinition bundles everything shared by every plant of one
species or cultivar:
  - the baseline GeneProfile each plant's Gene is derived from
  - one strategy per StrategyRole, resolved from a StrategyRegistry
  - an appearance name and a leaf morphology (used only by renderers)

Blueprints are plain mappings as produced by any loader (YAML, JSON, a
literal dict). Reading files is the host's job; build_catalog() turns
already-parsed blueprints into validated definitions. A cultivar is a
second definition that reuses its species' strategies, appearance and
morphology with some gene fields overridden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

import numpy as np

from plantsim.exceptions import ConfigurationError
from plantsim.genetics import GeneProfile, apply_overrides
from plantsim.registry import StrategyRegistry
from plantsim.strategies import Strategy
from plantsim.types import LeafShape, StrategyRole

logger = logging.getLogger(__name__)


def _require_mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"{what} must be a mapping, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class OrganMorphology:
    """Mesh-shaping hints; opaque to the simulation."""
    leaf_shape: LeafShape = LeafShape.SIMPLE

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "OrganMorphology":
        if data is None:
            return cls()
        data = _require_mapping(data, "morphology")
        shape = data.get('leaf_shape', LeafShape.SIMPLE.value)
        if isinstance(shape, LeafShape):
            return cls(leaf_shape=shape)
        try:
            return cls(leaf_shape=LeafShape(str(shape).strip().lower()))
        except ValueError:
            valid = [s.value for s in LeafShape]
            raise ConfigurationError(
                f"Unknown leaf shape '{shape}'. Valid shapes: {valid}"
            ) from None


@dataclass(frozen=True)
class SpeciesDefinition:
    """Immutable, shared description of one species or cultivar."""
    species_id: str
    base_gene: GeneProfile
    lifecycle: Strategy
    energy: Strategy
    growth: Strategy
    reproduction: Strategy
    appearance: str = ""
    morphology: OrganMorphology = field(default_factory=OrganMorphology)

    def strategy_for(self, role: StrategyRole) -> Strategy:
        return getattr(self, role.value)

    def validate(self) -> None:
        """Check every role resolves to a strategy tagged with that role.

        Raises:
            ConfigurationError: On a missing or mis-tagged strategy.
        """
        for role in StrategyRole:
            strategy = self.strategy_for(role)
            if strategy is None:
                raise ConfigurationError(
                    f"species '{self.species_id}' has no {role.value} strategy"
                )
            if not isinstance(strategy, Strategy) or strategy.role is not role:
                raise ConfigurationError(
                    f"species '{self.species_id}' has {strategy!r} as its "
                    f"{role.value} strategy"
                )


class SpeciesCatalog:
    """Ordered species id → definition mapping."""

    def __init__(self, definitions: Iterable[SpeciesDefinition] = ()):
        self._definitions: Dict[str, SpeciesDefinition] = {}
        for definition in definitions:
            self.add(definition)

    def add(self, definition: SpeciesDefinition) -> None:
        """Add or replace a definition, keyed by its species id."""
        self._definitions[definition.species_id] = definition

    def get(self, species_id: str) -> SpeciesDefinition:
        try:
            return self._definitions[species_id]
        except KeyError:
            raise ConfigurationError(
                f"Unknown species '{species_id}'. "
                f"Known species: {list(self._definitions)}"
            ) from None

    def get_random_definition(self, rng: np.random.Generator) -> SpeciesDefinition:
        """Pick a definition uniformly at random.

        Raises:
            ConfigurationError: If the catalog is empty.
        """
        if not self._definitions:
            raise ConfigurationError(
                "No species definitions are available to select from."
            )
        definitions = list(self._definitions.values())
        return definitions[int(rng.integers(len(definitions)))]

    def validate(self) -> None:
        """Raise ConfigurationError unless every definition is runnable."""
        if not self._definitions:
            raise ConfigurationError("species catalog is empty")
        for definition in self._definitions.values():
            definition.validate()

    @property
    def species_ids(self) -> List[str]:
        return list(self._definitions)

    def __contains__(self, species_id: str) -> bool:
        return species_id in self._definitions

    def __iter__(self) -> Iterator[SpeciesDefinition]:
        return iter(self._definitions.values())

    def __len__(self) -> int:
        return len(self._definitions)


# ═══════════════════════════════════════════════════════════════════════
# BLUEPRINTS
# ═══════════════════════════════════════════════════════════════════════

_REQUIRED_KEYS = (
    'species_id', 'lifecycle_strategy', 'energy_strategy',
    'growth_strategy', 'reproduction_strategy', 'base_gene',
)

_STRATEGY_KEYS = {
    StrategyRole.LIFECYCLE: 'lifecycle_strategy',
    StrategyRole.ENERGY: 'energy_strategy',
    StrategyRole.GROWTH: 'growth_strategy',
    StrategyRole.REPRODUCTION: 'reproduction_strategy',
}


def _definitions_from_blueprint(blueprint: Mapping[str, Any],
                                registry: StrategyRegistry,
                                ) -> List[SpeciesDefinition]:
    blueprint = _require_mapping(blueprint, "species blueprint")
    missing = [k for k in _REQUIRED_KEYS if blueprint.get(k) is None]
    if missing:
        name = blueprint.get('species_id', '<unnamed>')
        raise ConfigurationError(
            f"species blueprint '{name}' is missing required key(s): {missing}"
        )

    species_id = str(blueprint['species_id'])
    strategies = {
        role: registry.get(blueprint[key], role)
        for role, key in _STRATEGY_KEYS.items()
    }
    profile = GeneProfile.from_dict(
        _require_mapping(blueprint['base_gene'], f"base_gene of '{species_id}'")
    )
    appearance = str(blueprint.get('appearance', ''))
    morphology = OrganMorphology.from_dict(blueprint.get('morphology'))

    def make(definition_id: str, gene: GeneProfile) -> SpeciesDefinition:
        return SpeciesDefinition(
            species_id=definition_id,
            base_gene=gene,
            lifecycle=strategies[StrategyRole.LIFECYCLE],
            energy=strategies[StrategyRole.ENERGY],
            growth=strategies[StrategyRole.GROWTH],
            reproduction=strategies[StrategyRole.REPRODUCTION],
            appearance=appearance,
            morphology=morphology,
        )

    definitions = [make(species_id, profile)]
    cultivars = blueprint.get('cultivars') or ()
    if not isinstance(cultivars, (list, tuple)):
        raise ConfigurationError(
            f"cultivars of '{species_id}' must be a list of mappings"
        )
    for cultivar in cultivars:
        cultivar = _require_mapping(cultivar, f"cultivar of '{species_id}'")
        name = cultivar.get('cultivar_name')
        if not name:
            raise ConfigurationError(
                f"cultivar of '{species_id}' has no cultivar_name"
            )
        overrides = cultivar.get('gene_overrides')
        if overrides is not None:
            overrides = _require_mapping(
                overrides, f"gene_overrides of {species_id} '{name}'"
            )
        gene = apply_overrides(profile, overrides)
        definitions.append(make(f"{species_id} '{name}'", gene))
    return definitions


def build_catalog(blueprints: Iterable[Mapping[str, Any]],
                  registry: Optional[StrategyRegistry] = None) -> SpeciesCatalog:
    """Build and validate a catalog from parsed species blueprints.

    Args:
        blueprints: One mapping per species (see DEFAULT_BLUEPRINTS).
        registry: Strategy lookup; the built-in registry if None.

    Returns:
        SpeciesCatalog with one definition per species and per cultivar.

    Raises:
        ConfigurationError: On missing keys, unknown strategies, unknown
            gene traits or nutrient names, or wrongly shaped entries.
    """
    if registry is None:
        registry = StrategyRegistry()
    catalog = SpeciesCatalog()
    for blueprint in blueprints:
        for definition in _definitions_from_blueprint(blueprint, registry):
            catalog.add(definition)
    catalog.validate()
    logger.debug("built species catalog: %s", catalog.species_ids)
    return catalog


DEFAULT_BLUEPRINTS: List[Dict[str, Any]] = [
    {
        'species_id': 'Maple',
        'appearance': 'Maple',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Tree',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'palmate'},
        'base_gene': {
            'growth_speed': 0.3,
            'branching_chance': 0.08,
            'leaf_size': 0.8,
            'flower_chance': 0.02,
            'apical_dominance': 1.0,
            'trunk_thickness': 0.15,
            'max_age': 1500,
            'energy_to_flower': 150,
            'seed_count': 3,
            'fruit_size': 0.3,
            'nutrient_uptake_rates': {
                'Nitrogen': 0.3, 'Phosphorus': 0.2,
                'Potassium': 0.2, 'Magnesium': 0.1,
            },
        },
    },
    {
        'species_id': 'Pine',
        'appearance': 'Pine',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Conifer',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'needle'},
        'base_gene': {
            'growth_speed': 0.25,
            'branching_chance': 0.12,
            'leaf_size': 0.5,
            'flower_chance': 0.015,
            'apical_dominance': 1.2,
            'trunk_thickness': 0.18,
            'max_age': 2000,
            'energy_to_flower': 200,
            'seed_count': 4,
            'fruit_size': 0.4,
            'nutrient_uptake_rates': {
                'Nitrogen': 0.2, 'Phosphorus': 0.1,
                'Potassium': 0.2, 'Magnesium': 0.1,
            },
        },
    },
    {
        'species_id': 'Rose',
        'appearance': 'Rose',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Shrub',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'simple'},
        'base_gene': {
            'growth_speed': 0.15,
            'branching_chance': 0.2,
            'leaf_size': 0.4,
            'flower_chance': 0.05,
            'apical_dominance': 0.6,
            'trunk_thickness': 0.05,
            'max_age': 800,
            'energy_to_flower': 80,
            'seed_count': 2,
            'fruit_size': 0.25,
            'nutrient_uptake_rates': {
                'Nitrogen': 0.4, 'Phosphorus': 0.3,
                'Potassium': 0.3, 'Magnesium': 0.1,
            },
            'possible_flower_colors': ['HotPink', 'Red', 'White'],
            'variegation_chance': 0.01,
        },
        'cultivars': [
            {
                'cultivar_name': 'Golden Showers',
                'gene_overrides': {
                    'possible_flower_colors': ['Yellow'],
                    'flower_chance': 0.07,
                },
            },
            {
                'cultivar_name': 'Blush',
                'gene_overrides': {
                    'possible_flower_colors': ['LightPink', 'White'],
                    'variegation_chance': 0.2,
                },
            },
        ],
    },
    {
        'species_id': 'Dandelion',
        'appearance': 'Dandelion',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Rosette',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'lobed'},
        'base_gene': {
            'growth_speed': 0.05,
            'branching_chance': 0.0,
            'leaf_size': 0.3,
            'flower_chance': 0.1,
            'apical_dominance': 0.2,
            'trunk_thickness': 0.02,
            'max_age': 300,
            'energy_to_flower': 60,
            'seed_count': 6,
            'fruit_size': 0.15,
            'nutrient_uptake_rates': {'Nitrogen': 0.2, 'Potassium': 0.1},
        },
    },
    {
        'species_id': 'Meadow Grass',
        'appearance': 'Dandelion',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Herbaceous',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'needle'},
        'base_gene': {
            'growth_speed': 0.05,
            'branching_chance': 0.0,
            'leaf_size': 0.25,
            'flower_chance': 0.08,
            'apical_dominance': 0.1,
            'trunk_thickness': 0.01,
            'max_age': 250,
            'energy_to_flower': 50,
            'seed_count': 5,
            'fruit_size': 0.1,
            'nutrient_uptake_rates': {'Nitrogen': 0.3},
        },
    },
    {
        'species_id': 'Ivy',
        'appearance': 'Maple',
        'lifecycle_strategy': 'Standard',
        'energy_strategy': 'Photosynthesis',
        'growth_strategy': 'Vine',
        'reproduction_strategy': 'WindDispersal',
        'morphology': {'leaf_shape': 'lobed'},
        'base_gene': {
            'growth_speed': 0.2,
            'branching_chance': 0.0,
            'leaf_size': 0.35,
            'flower_chance': 0.03,
            'apical_dominance': 0.3,
            'trunk_thickness': 0.03,
            'max_age': 900,
            'energy_to_flower': 100,
            'seed_count': 3,
            'fruit_size': 0.2,
            'nutrient_uptake_rates': {
                'Nitrogen': 0.2, 'Phosphorus': 0.2, 'Magnesium': 0.2,
            },
        },
    },
]


def default_catalog(registry: Optional[StrategyRegistry] = None) -> SpeciesCatalog:
    """Catalog of the built-in species (six species, two Rose cultivars)."""
    return build_catalog(DEFAULT_BLUEPRINTS, registry)
