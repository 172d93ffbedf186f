"""Core enumerations for PlantSim.

This module is the single place that defines:
  - OrganType: structural unit tags (some reserved, never instantiated)
  - PlantState: lifecycle state machine states
  - NutrientType: soil nutrient channels (index into the nutrient grid)
  - GrowthType: growth algorithm variants
  - StrategyRole: which per-tick behaviour a strategy implements
  - LeafShape: morphology descriptor consumed only by renderers

All modules import these types from here.
"""

from enum import Enum, IntEnum


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class OrganType(IntEnum):
    """Organ variants.

    SEED, COTYLEDON, VINE and THORN are reserved tags: declared so that
    renderers and external data can name them, but no strategy creates them.
    """
    ROOT      = 0
    STEM      = 1
    LEAF      = 2
    FLOWER    = 3
    FRUIT     = 4
    SEED      = 5   # reserved
    COTYLEDON = 6   # reserved
    VINE      = 7   # reserved
    THORN     = 8   # reserved
    MERISTEM  = 9


class PlantState(IntEnum):
    """Lifecycle states.

    SEED → GERMINATING → VEGETATIVE ⇄ DORMANT
    VEGETATIVE → FLOWERING → FRUITING → VEGETATIVE
    any → DEAD (terminal, decided after all strategies run)
    """
    SEED        = 0
    GERMINATING = 1
    VEGETATIVE  = 2
    DORMANT     = 3
    FLOWERING   = 4
    FRUITING    = 5
    DEAD        = 6


class NutrientType(IntEnum):
    """Soil nutrient channels. Values index axis 0 of the nutrient grid."""
    NITROGEN   = 0
    PHOSPHORUS = 1
    POTASSIUM  = 2
    MAGNESIUM  = 3


N_NUTRIENTS = len(NutrientType)


class GrowthType(Enum):
    """Growth algorithm variants (Basal and Rosette share one algorithm)."""
    APICAL  = "apical"
    BASAL   = "basal"
    VINE    = "vine"
    ROSETTE = "rosette"


class StrategyRole(Enum):
    """The four per-tick behaviours, run in this order every tick."""
    LIFECYCLE    = "lifecycle"
    ENERGY       = "energy"
    GROWTH       = "growth"
    REPRODUCTION = "reproduction"


STRATEGY_ORDER = (
    StrategyRole.LIFECYCLE,
    StrategyRole.ENERGY,
    StrategyRole.GROWTH,
    StrategyRole.REPRODUCTION,
)


class LeafShape(Enum):
    """Leaf outline used by mesh generation; opaque to the simulation."""
    SIMPLE  = "simple"
    LOBED   = "lobed"
    PALMATE = "palmate"
    NEEDLE  = "needle"


def parse_nutrient(name: str) -> NutrientType:
    """Resolve a nutrient name (case-insensitive) to its NutrientType.

    Raises:
        KeyError: If the name is not a known nutrient.
    """
    try:
        return NutrientType[name.strip().upper()]
    except KeyError:
        valid = ", ".join(n.name.capitalize() for n in NutrientType)
        raise KeyError(f"Unknown nutrient '{name}'. Valid nutrients: {valid}") from None
