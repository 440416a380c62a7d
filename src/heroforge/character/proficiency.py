"""Proficiency value for heroforge."""

import math
from dataclasses import dataclass
from typing import Literal

Rounding = Literal["down", "up"]


@dataclass(frozen=True)
class Proficiency:
    """
    A proficiency rating applied at a fraction.

    ``flat`` is ``base * multiplier`` rounded down (floor) or up (ceil); a
    multiplier of 0 always gives 0. Instances are immutable: when any input
    changes, build a new one.

    Examples:
        >>> Proficiency(3, 0.5).flat
        1
        >>> Proficiency(3, 0.5, "up").flat
        2
    """

    base: int
    multiplier: float = 1
    rounding: Rounding = "down"

    @property
    def flat(self) -> int:
        """The flat bonus this proficiency grants."""
        if not self.multiplier:
            return 0
        value = self.base * self.multiplier
        if self.rounding == "up":
            return math.ceil(value)
        return math.floor(value)

    @property
    def term(self) -> str | None:
        """Flat bonus as a roll part, or None when there is no proficiency."""
        return str(self.flat) if self else None

    def __bool__(self) -> bool:
        return self.multiplier > 0
