"""Organ data model.

Organs live in a per-plant arena keyed by an integer handle. Back-links
are handles, never object references:
  - owner:  id of the owning Plant (constant for the organ's lifetime)
  - parent: handle of the parent organ, None only for the Root

Reparenting (a Meristem tip moving onto the Stem it just grew) is
therefore a plain handle update.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import numpy as np

from plantsim.types import OrganType

UNASSIGNED = -1


@dataclass(eq=False)
class Organ:
    """Common organ fields. Use a concrete subclass."""
    owner: str
    parent: Optional[int]
    position: np.ndarray
    direction: np.ndarray
    age: int = 0
    handle: int = UNASSIGNED

    organ_type: ClassVar[OrganType]


@dataclass(eq=False)
class Root(Organ):
    thickness: float = 0.0

    organ_type: ClassVar[OrganType] = OrganType.ROOT


@dataclass(eq=False)
class Stem(Organ):
    thickness: float = 0.0
    end_position: Optional[np.ndarray] = None

    organ_type: ClassVar[OrganType] = OrganType.STEM


@dataclass(eq=False)
class Leaf(Organ):
    area: float = 0.0

    organ_type: ClassVar[OrganType] = OrganType.LEAF


@dataclass(eq=False)
class Flower(Organ):
    organ_type: ClassVar[OrganType] = OrganType.FLOWER


@dataclass(eq=False)
class Fruit(Organ):
    size: float = 0.0

    organ_type: ClassVar[OrganType] = OrganType.FRUIT


@dataclass(eq=False)
class Meristem(Organ):
    """Growth tip. Inactive while its position is occupied by a flower."""
    is_active: bool = True

    organ_type: ClassVar[OrganType] = OrganType.MERISTEM
