"""Damage dice values and denomination stepping."""

from collections.abc import Sequence
from dataclasses import dataclass, replace


def step_denomination(denomination: int, step: int, steps: Sequence[int]) -> int:
    """Step a die denomination up or down the dice progression, clamping to the ends.

    A denomination that is not part of the progression is treated as sitting
    just below its first step, so stepping it up once yields the smallest die.

    Args:
        denomination: Starting denomination (e.g. 6)
        step: How many steps to move (negative steps down)
        steps: Dice progression (e.g. (4, 6, 8, 10, 12))

    Returns:
        The new denomination

    Examples:
        >>> step_denomination(6, 1, (4, 6, 8, 10, 12))
        8
        >>> step_denomination(12, 2, (4, 6, 8, 10, 12))
        12
    """
    index = steps.index(denomination) if denomination in steps else -1
    index = min(max(index + step, 0), len(steps) - 1)
    return steps[index]


@dataclass(frozen=True)
class DamageSpec:
    """Immutable damage dice (``number`` dice of ``denomination`` faces) and type."""

    number: int | None = None
    denomination: int | None = None
    type: str = ""

    def modify(
        self,
        steps: Sequence[int],
        number: int | None = None,
        denomination: int | None = None,
    ) -> "DamageSpec":
        """Add dice and step the denomination.

        Args:
            steps: Dice progression used for denomination steps
            number: Dice to add
            denomination: Denomination steps to move

        Returns:
            The modified damage
        """
        spec = self
        if number:
            spec = replace(spec, number=(spec.number or 0) + number)
        if denomination and spec.denomination:
            spec = replace(spec, denomination=step_denomination(spec.denomination, denomination, steps))
        return spec

    @property
    def formula(self) -> str:
        """Dice expression for this damage, or an empty string if there are no dice."""
        if not self.number or not self.denomination:
            return ""
        return f"{self.number}d{self.denomination}"

    @property
    def average(self) -> int:
        """Average rolled damage, rounded down."""
        if not self.number or not self.denomination:
            return 0
        return (self.number * (self.denomination + 1)) // 2
