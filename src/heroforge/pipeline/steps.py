"""Capability step interfaces for the derivation pipeline.

A capability contributes one derivation step per phase. Steps for creatures
operate on the shared ``Creature`` draft; item steps additionally receive the
item being derived. Every hook defaults to doing nothing so a capability only
implements the phases it participates in.
"""

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from heroforge.pipeline.entities import Creature, ItemState


class Phase(StrEnum):
    """Derivation phases, in execution order."""

    BASE = "base"
    DERIVED = "derived"
    FINAL = "final"


class CreatureStep:
    """Derivation step contributed by a creature capability."""

    name: str = "creature"

    def prepare_base(self, creature: "Creature") -> None:
        pass

    def prepare_derived(self, creature: "Creature") -> None:
        pass

    def prepare_final(self, creature: "Creature") -> None:
        pass

    def run(self, phase: Phase, creature: "Creature") -> None:
        """Run this step's hook for a phase."""
        getattr(self, f"prepare_{phase.value}")(creature)


class ItemStep:
    """Derivation step contributed by an item capability."""

    name: str = "item"

    def applies_to(self, item: "ItemState") -> bool:
        """Whether this capability participates in deriving the item."""
        return True

    def prepare_base(self, item: "ItemState", creature: "Creature") -> None:
        pass

    def prepare_derived(self, item: "ItemState", creature: "Creature") -> None:
        pass

    def prepare_final(self, item: "ItemState", creature: "Creature") -> None:
        pass

    def run(self, phase: Phase, item: "ItemState", creature: "Creature") -> None:
        """Run this step's hook for a phase if the capability applies to the item."""
        if self.applies_to(item):
            getattr(self, f"prepare_{phase.value}")(item, creature)
