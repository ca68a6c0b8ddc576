from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Mapping

SINGLES = "singles"
DOUBLES = "doubles"

# System B: every player earns points, winners more than losers.
WIN_POINTS = Decimal(3)
LOSS_POINTS = Decimal(1)

PLAYERS_PER_MATCH: Mapping[str, int] = {
    SINGLES: 2,
    DOUBLES: 4,
}

PICKLE_POINTS_RATE = Decimal("1.5")
GENDER_BONUS_MULTIPLIER = Decimal("1.15")
GENDER_BONUS_POINTS_THRESHOLD = Decimal(1000)
DEFAULT_MULTIPLIER = Decimal("1.0")

MALE = "male"
FEMALE = "female"

_GENDER_ALIASES: Mapping[str, str] = {
    "m": MALE,
    "male": MALE,
    "man": MALE,
    "men": MALE,
    "男": MALE,
    "f": FEMALE,
    "female": FEMALE,
    "woman": FEMALE,
    "women": FEMALE,
    "女": FEMALE,
}

_CENT = Decimal("0.01")


def normalize_gender(value: object | None) -> str | None:
    """Return ``"male"``, ``"female"`` or None for unknown values."""
    if value is None:
        return None
    return _GENDER_ALIASES.get(str(value).strip().lower())


def to_multiplier(value: object | None) -> Decimal:
    """Convert a stored multiplier into a Decimal, defaulting to 1.0."""
    if value is None:
        return DEFAULT_MULTIPLIER
    if isinstance(value, bool):
        raise TypeError("Multiplier must be a number.")
    multiplier = Decimal(str(value))
    if multiplier <= 0:
        raise ValueError("Multiplier must be positive.")
    return multiplier


def round_points(value: Decimal) -> Decimal:
    """Round ranking points half-up to two decimals."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def base_points(match_type: str, multiplier: object | None = None) -> Decimal:
    """Return the points a match distributes before any gender bonus."""
    if match_type not in PLAYERS_PER_MATCH:
        raise ValueError(f"Unknown match type: {match_type!r}")
    per_side = PLAYERS_PER_MATCH[match_type] // 2
    total = (WIN_POINTS + LOSS_POINTS) * per_side
    return round_points(total * to_multiplier(multiplier))


def is_cross_gender_pairing(team1: list[str | None], team2: list[str | None]) -> bool:
    """True when either side pairs a male and a female player."""
    for side in (team1, team2):
        genders = {normalize_gender(item) for item in side}
        if MALE in genders and FEMALE in genders:
            return True
    return False


def gender_bonus_applies(
    gender: str | None,
    current_points: object | None,
    cross_gender: bool,
) -> bool:
    """True for a female player in a cross-gender match who is still below
    GENDER_BONUS_POINTS_THRESHOLD ranking points.

    Players at or above the threshold score like anyone else, so a mixed
    row can carry the cross-gender flag without any extra points.
    """
    if not cross_gender or normalize_gender(gender) != FEMALE:
        return False
    return Decimal(str(current_points or 0)) < GENDER_BONUS_POINTS_THRESHOLD


def player_match_points(
    *,
    won: bool,
    gender: str | None,
    current_points: object | None,
    cross_gender: bool,
    multiplier: object | None = None,
) -> Decimal:
    """Return ranking points one player earns from one match."""
    points = (WIN_POINTS if won else LOSS_POINTS) * to_multiplier(multiplier)
    if gender_bonus_applies(gender, current_points, cross_gender):
        points *= GENDER_BONUS_MULTIPLIER
    return round_points(points)


def pickle_points_for(ranking_points: Decimal | int | float) -> int:
    """Pickle points are ranking points x 1.5, rounded to a whole number."""
    value = Decimal(str(ranking_points)) * PICKLE_POINTS_RATE
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
