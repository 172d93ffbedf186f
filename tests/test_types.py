"""Tests for plantsim.types — enumerations and nutrient name parsing."""

import numpy as np
import pytest

from plantsim.types import (
    N_NUTRIENTS,
    STRATEGY_ORDER,
    GrowthType,
    LeafShape,
    NutrientType,
    OrganType,
    PlantState,
    StrategyRole,
    parse_nutrient,
)


# ── Enum tests ────────────────────────────────────────────────────────

class TestOrganType:
    def test_values(self):
        assert OrganType.ROOT == 0
        assert OrganType.STEM == 1
        assert OrganType.LEAF == 2
        assert OrganType.MERISTEM == 9

    def test_reserved_tags_declared(self):
        for name in ('SEED', 'COTYLEDON', 'VINE', 'THORN'):
            assert name in OrganType.__members__

    def test_count(self):
        assert len(OrganType) == 10


class TestPlantState:
    def test_values(self):
        assert PlantState.SEED == 0
        assert PlantState.GERMINATING == 1
        assert PlantState.VEGETATIVE == 2
        assert PlantState.DORMANT == 3
        assert PlantState.FLOWERING == 4
        assert PlantState.FRUITING == 5
        assert PlantState.DEAD == 6


class TestNutrientType:
    def test_four_nutrients(self):
        assert N_NUTRIENTS == 4
        assert [n.name for n in NutrientType] == [
            'NITROGEN', 'PHOSPHORUS', 'POTASSIUM', 'MAGNESIUM',
        ]

    def test_integer_compatible(self):
        """Nutrients index axis 0 of the nutrient grid."""
        arr = np.arange(N_NUTRIENTS)
        assert arr[NutrientType.POTASSIUM] == 2


class TestStrategyRoles:
    def test_execution_order(self):
        assert STRATEGY_ORDER == (
            StrategyRole.LIFECYCLE,
            StrategyRole.ENERGY,
            StrategyRole.GROWTH,
            StrategyRole.REPRODUCTION,
        )

    def test_growth_types(self):
        assert {g.value for g in GrowthType} == {'apical', 'basal', 'vine', 'rosette'}

    def test_leaf_shapes(self):
        assert LeafShape('needle') is LeafShape.NEEDLE


# ── parse_nutrient ────────────────────────────────────────────────────

class TestParseNutrient:
    def test_case_insensitive(self):
        assert parse_nutrient('Nitrogen') is NutrientType.NITROGEN
        assert parse_nutrient('phosphorus') is NutrientType.PHOSPHORUS
        assert parse_nutrient(' MAGNESIUM ') is NutrientType.MAGNESIUM

    def test_unknown(self):
        with pytest.raises(KeyError, match="Unknown nutrient"):
            parse_nutrient('Calcium')
