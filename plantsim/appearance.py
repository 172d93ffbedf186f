"""Appearance lookup table for renderers.

Colors only; building meshes or materials is the renderer's concern. The
table is built once by the host with build_appearance_table() and handed
to whatever draws the plants. Colors are (r, g, b) byte tuples; None means
the part is not drawn.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from plantsim.genetics import Gene

RGB = Tuple[int, int, int]

GRAY: RGB = (128, 128, 128)


@dataclass(frozen=True)
class Appearance:
    """Colors for one appearance name.

    trunk_colors is a (base, top) gradient pair; variegated_leaf is the
    pale color blended into the normal leaf color on variegated plants.
    """
    name: str
    trunk_colors: Optional[Tuple[RGB, RGB]]
    leaf: RGB
    variegated_leaf: RGB
    flower_colors: Mapping[str, Optional[RGB]] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def leaf_color(self, gene: Gene) -> RGB:
        return self.variegated_leaf if gene.is_variegated else self.leaf

    def flower_color(self, gene: Gene) -> Optional[RGB]:
        """Color for the gene's flower color name.

        Unknown names fall back to the first table entry, then to gray.
        """
        if gene.flower_color in self.flower_colors:
            return self.flower_colors[gene.flower_color]
        return next(iter(self.flower_colors.values()), GRAY)


FALLBACK = Appearance(
    name="Fallback",
    trunk_colors=(GRAY, GRAY),
    leaf=GRAY,
    variegated_leaf=GRAY,
)


def build_appearance_table() -> Mapping[str, Appearance]:
    """Immutable appearance name → Appearance table."""
    entries = (
        Appearance(
            name="Maple",
            trunk_colors=((101, 67, 33), (139, 90, 43)),
            leaf=(50, 160, 50),
            variegated_leaf=(255, 255, 255),
            flower_colors=MappingProxyType({"Default": None}),
        ),
        Appearance(
            name="Pine",
            trunk_colors=((80, 50, 20), (110, 70, 40)),
            leaf=(20, 80, 20),
            variegated_leaf=(255, 255, 0),
            flower_colors=MappingProxyType({"Default": (139, 69, 19)}),
        ),
        Appearance(
            name="Rose",
            trunk_colors=((80, 50, 20), (110, 70, 40)),
            leaf=(40, 120, 50),
            variegated_leaf=(255, 255, 224),
            flower_colors=MappingProxyType({
                "HotPink": (255, 105, 180),
                "White": (245, 245, 245),
                "Red": (139, 0, 0),
                "Yellow": (255, 215, 0),
                "LightPink": (255, 182, 193),
            }),
        ),
        Appearance(
            name="Dandelion",
            trunk_colors=None,
            leaf=(34, 139, 34),
            variegated_leaf=(250, 250, 210),
            flower_colors=MappingProxyType({"Default": (255, 255, 0)}),
        ),
    )
    return MappingProxyType({a.name: a for a in entries})


def appearance_for(table: Mapping[str, Appearance], name: str) -> Appearance:
    """Look up an appearance, with a gray fallback for unknown names."""
    return table.get(name, FALLBACK)
