"""
SDR level engine.

Levels are earned by cumulative closed-deal value and lower the platform's
cut of each commission:

    Level 1 (Bronze)  from 0        5%   platform cut
    Level 2 (Silver)  from 30,000   4%
    Level 3 (Gold)    from 100,000  2.5% (terminal)

Thresholds are inclusive. Everything here is pure; crediting a deal to a
profile happens in SQL (see deal_closure.credit_closed_value).
"""

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation
from enum import IntEnum
from typing import Optional, Union

from src.services.exceptions import InvalidInputError

Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")


class SDRLevel(IntEnum):
    LEVEL_1 = 1
    LEVEL_2 = 2
    LEVEL_3 = 3


@dataclass(frozen=True)
class LevelPolicy:
    threshold: Decimal
    platform_cut: Decimal
    label: str


# Single source of truth for thresholds and platform cuts.
LEVEL_TABLE: dict[SDRLevel, LevelPolicy] = {
    SDRLevel.LEVEL_1: LevelPolicy(Decimal("0"), Decimal("5"), "Bronze"),
    SDRLevel.LEVEL_2: LevelPolicy(Decimal("30000"), Decimal("4"), "Silver"),
    SDRLevel.LEVEL_3: LevelPolicy(Decimal("100000"), Decimal("2.5"), "Gold"),
}

MAX_LEVEL = max(LEVEL_TABLE)


@dataclass(frozen=True)
class LevelProgress:
    """Where an SDR stands for a given cumulative closed value."""

    level: SDRLevel
    progress_percent: Decimal
    next_threshold: Optional[Decimal]
    remaining: Optional[Decimal]
    cumulative_value: Decimal

    @property
    def platform_cut(self) -> Decimal:
        return LEVEL_TABLE[self.level].platform_cut

    @property
    def label(self) -> str:
        return LEVEL_TABLE[self.level].label


@dataclass(frozen=True)
class LevelChange:
    """Result of crediting a closed deal to an SDR."""

    old_level: SDRLevel
    new_level: SDRLevel
    cumulative_value: Decimal

    @property
    def leveled_up(self) -> bool:
        return detect_level_up(self.old_level, self.new_level)


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert a numeric input to a finite Decimal or raise InvalidInputError."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number, got {value!r}")
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(f"{name} must be a number, got {value!r}") from None
    if not result.is_finite():
        raise InvalidInputError(f"{name} must be finite, got {value!r}")
    return result


def parse_level(level) -> SDRLevel:
    """Map a stored or requested level to SDRLevel; unknown levels are rejected."""
    if isinstance(level, bool):
        raise InvalidInputError(f"Unknown SDR level: {level!r}")
    try:
        return SDRLevel(level)
    except (ValueError, TypeError):
        raise InvalidInputError(f"Unknown SDR level: {level!r}") from None


def derive_level(cumulative_value: Number) -> SDRLevel:
    """Highest level whose threshold the value has reached."""
    value = _non_negative(cumulative_value)
    reached = [level for level, policy in LEVEL_TABLE.items() if value >= policy.threshold]
    return max(reached)


def level_for(cumulative_value: Number) -> LevelProgress:
    """Level and progress towards the next level for a cumulative value."""
    value = _non_negative(cumulative_value)
    level = derive_level(value)

    if level == MAX_LEVEL:
        return LevelProgress(
            level=level,
            progress_percent=HUNDRED,
            next_threshold=None,
            remaining=None,
            cumulative_value=value,
        )

    floor = LEVEL_TABLE[level].threshold
    ceiling = LEVEL_TABLE[SDRLevel(level + 1)].threshold
    progress = (value - floor) / (ceiling - floor) * HUNDRED

    return LevelProgress(
        level=level,
        progress_percent=min(HUNDRED, progress),
        next_threshold=ceiling,
        remaining=max(Decimal("0"), ceiling - value),
        cumulative_value=value,
    )


def platform_cut_for(level) -> Decimal:
    """Platform cut percentage for a level (5 / 4 / 2.5)."""
    return LEVEL_TABLE[parse_level(level)].platform_cut


def detect_level_up(old_level, new_level) -> bool:
    """True only when the level strictly increased."""
    return int(new_level) > int(old_level)


def effective_level(stored_level, cumulative_value: Number) -> SDRLevel:
    """
    Sticky level: never lower than what was already granted.

    A transient lower cumulative value (e.g. after a manual correction)
    cannot take a level away.
    """
    return max(parse_level(stored_level), derive_level(cumulative_value))


def level_change_for(stored_level, cumulative_value: Number) -> LevelChange:
    """
    Level transition for a profile whose total has just reached cumulative_value.

    stored_level is the level persisted before the credit. Asking again with
    the updated stored level at the same value reports no level-up.
    """
    value = _non_negative(cumulative_value)
    old_level = parse_level(stored_level or SDRLevel.LEVEL_1)
    return LevelChange(
        old_level=old_level,
        new_level=effective_level(old_level, value),
        cumulative_value=value,
    )


def progress_for_profile(stored_level, cumulative_value: Number) -> LevelProgress:
    """
    Level card for a stored profile.

    Uses the sticky level; when it is ahead of the cumulative value, progress
    is measured from that level's threshold.
    """
    value = _non_negative(cumulative_value)
    level = effective_level(stored_level, value)
    progress = level_for(max(value, LEVEL_TABLE[level].threshold))
    remaining = progress.remaining
    if progress.next_threshold is not None:
        remaining = max(Decimal("0"), progress.next_threshold - value)
    return replace(progress, cumulative_value=value, remaining=remaining)


def _non_negative(value: Number, name: str = "cumulative_value") -> Decimal:
    result = to_decimal(value, name)
    if result < 0:
        raise InvalidInputError(f"{name} must be >= 0, got {value!r}")
    return result
