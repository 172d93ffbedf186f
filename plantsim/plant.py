"""Plant: one individual and the arena of organs it owns.

Organs are stored by integer handle in insertion order. Handles are never
reused, so a removed flower's handle cannot alias a later organ.

Transient queues:
  - newly created organs: drained once per tick by the renderer
  - new seeds: drained once per tick by the population manager
"""

from __future__ import annotations

import logging
import uuid
from typing import (
    TYPE_CHECKING, Dict, Iterable, Iterator, List, Optional, Sequence, Type,
    TypeVar,
)

import numpy as np

from plantsim.exceptions import InvariantViolation
from plantsim.genetics import Gene, derive_gene
from plantsim.geometry import DOWN, as_vec3
from plantsim.organs import Organ, Root
from plantsim.types import PlantState, STRATEGY_ORDER

if TYPE_CHECKING:
    from plantsim.species import SpeciesDefinition
    from plantsim.strategies import SimulationContext

logger = logging.getLogger(__name__)

INITIAL_ENERGY: float = 50.0

O = TypeVar('O', bound=Organ)


class Plant:
    """A single plant: genetics, lifecycle state, energy and organ tree.

    Invariant: exactly one Root, created here and never removed.
    """

    def __init__(self, position: Sequence[float],
                 species: "SpeciesDefinition",
                 rng: np.random.Generator,
                 gene: Optional[Gene] = None):
        self.id: str = uuid.uuid4().hex
        self.species = species
        self.gene: Gene = gene if gene is not None else derive_gene(species.base_gene, rng)
        self.state: PlantState = PlantState.SEED
        self.energy: float = INITIAL_ENERGY
        self.age: int = 0

        self._organs: Dict[int, Organ] = {}
        self._next_handle: int = 0
        self._new_organs: List[Organ] = []
        self._new_seeds: List["Plant"] = []
        self._death_logged = False

        root = Root(
            owner=self.id, parent=None,
            position=as_vec3(position), direction=DOWN.copy(),
            thickness=self.gene.trunk_thickness,
        )
        self.add_organ(root, renderable=False)
        self._root_handle = root.handle

    @classmethod
    def from_parent(cls, position: Sequence[float], parent: "Plant",
                    rng: np.random.Generator) -> "Plant":
        """Conceive a seed of the parent's species with a mutated gene."""
        return cls(position, parent.species, rng, gene=parent.gene.mutate(rng))

    def __repr__(self) -> str:
        return (f"Plant({self.species.species_id!r}, state={self.state.name}, "
                f"age={self.age}, energy={self.energy:.1f}, organs={self.organ_count})")

    # ── organ arena ──────────────────────────────────────────────────

    def add_organ(self, organ: Organ, renderable: bool = True) -> int:
        """Take ownership of an organ and return its handle.

        Only the Root may be added without a parent; any other organ must
        name a parent already held by this plant.
        """
        if organ.owner != self.id:
            raise InvariantViolation(
                f"organ owned by {organ.owner} added to plant {self.id}"
            )
        if organ.parent is None:
            if not isinstance(organ, Root) or self._organs:
                raise InvariantViolation(
                    f"{organ.organ_type.name} added to plant {self.id} without a parent"
                )
        elif organ.parent not in self._organs:
            raise InvariantViolation(
                f"{organ.organ_type.name} added to plant {self.id} with unknown "
                f"parent handle {organ.parent}"
            )
        organ.handle = self._next_handle
        self._next_handle += 1
        self._organs[organ.handle] = organ
        if renderable:
            self._new_organs.append(organ)
        return organ.handle

    def remove_organs(self, organs: Iterable[Organ]) -> None:
        """Destroy organs. The Root can never be removed."""
        for organ in organs:
            if organ.handle == self._root_handle:
                raise InvariantViolation(f"attempt to remove the Root of plant {self.id}")
            self._organs.pop(organ.handle, None)

    def organ(self, handle: int) -> Organ:
        try:
            return self._organs[handle]
        except KeyError:
            raise InvariantViolation(
                f"plant {self.id} has no organ with handle {handle}"
            ) from None

    def parent_of(self, organ: Organ) -> Optional[Organ]:
        return None if organ.parent is None else self.organ(organ.parent)

    @property
    def organs(self) -> List[Organ]:
        """All organs in creation order (a copy; safe to mutate the plant)."""
        return list(self._organs.values())

    def organs_of(self, organ_cls: Type[O]) -> Iterator[O]:
        for organ in self._organs.values():
            if isinstance(organ, organ_cls):
                yield organ

    @property
    def organ_count(self) -> int:
        return len(self._organs)

    @property
    def root(self) -> Root:
        return self._organs[self._root_handle]

    @property
    def root_position(self) -> np.ndarray:
        return self.root.position

    # ── transient queues ─────────────────────────────────────────────

    def flush_new_organs(self) -> List[Organ]:
        """Drain the organs created since the last flush (one-shot)."""
        drained, self._new_organs = self._new_organs, []
        return drained

    def queue_seed(self, seed: "Plant") -> None:
        self._new_seeds.append(seed)

    @property
    def has_new_seeds(self) -> bool:
        return bool(self._new_seeds)

    def harvest_seeds(self) -> List["Plant"]:
        """Drain the seeds queued since the last harvest (one-shot)."""
        drained, self._new_seeds = self._new_seeds, []
        return drained

    # ── per-tick update ──────────────────────────────────────────────

    @property
    def is_dead(self) -> bool:
        return self.state is PlantState.DEAD

    def update(self, ctx: "SimulationContext") -> None:
        """Advance one tick: age, run the four strategies, then check death."""
        if self.is_dead:
            return
        self.age += 1
        for organ in self._organs.values():
            organ.age += 1

        for role in STRATEGY_ORDER:
            self.species.strategy_for(role).execute(self, ctx)

        self.check_death(ctx)

    def check_death(self, ctx: Optional["SimulationContext"] = None) -> bool:
        """Mark the plant Dead if starved or past max age.

        Returns:
            True if the plant is dead after the check.
        """
        if self.is_dead:
            return True
        if self.energy <= 0 or self.age > self.gene.max_age:
            self.state = PlantState.DEAD
            if not self._death_logged:
                self._death_logged = True
                if ctx is not None:
                    ctx.log_event(
                        f"A {self.species.species_id} died "
                        f"(Age: {self.age}, Energy: {self.energy:.0f})."
                    )
                else:
                    logger.info("%s died (age=%d, energy=%.1f)",
                                self.species.species_id, self.age, self.energy)
            return True
        return False

    # ── invariants ───────────────────────────────────────────────────

    def check_invariants(self) -> None:
        """Verify the organ tree.

        Exactly one Root; every other organ has a parent; every parent
        handle exists; every parent chain reaches the Root without a cycle;
        every organ is owned by this plant.

        Raises:
            InvariantViolation: On the first broken invariant.
        """
        roots = [o for o in self._organs.values() if isinstance(o, Root)]
        if len(roots) != 1:
            raise InvariantViolation(
                f"plant {self.id} has {len(roots)} Root organs, expected 1"
            )
        root = roots[0]
        if root.parent is not None:
            raise InvariantViolation(f"Root of plant {self.id} has a parent")

        limit = len(self._organs)
        for organ in self._organs.values():
            if organ.owner != self.id:
                raise InvariantViolation(
                    f"organ {organ.handle} of plant {self.id} is owned by {organ.owner}"
                )
            node = organ
            steps = 0
            while node is not root:
                if node.parent is None:
                    raise InvariantViolation(
                        f"{node.organ_type.name} {node.handle} of plant {self.id} "
                        f"has no parent"
                    )
                node = self.organ(node.parent)
                steps += 1
                if steps > limit:
                    raise InvariantViolation(
                        f"cycle in parent chain of organ {organ.handle} "
                        f"of plant {self.id}"
                    )
