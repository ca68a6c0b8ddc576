from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class PlayerOverride:
    """Profile values supplied on a spreadsheet row for one player."""

    gender: str | None = None
    birth_date: str | None = None


@dataclass(frozen=True)
class RawMatchRow:
    tab_name: str
    row_number: int
    match_type: str
    player1: str
    player2: str
    player3: str | None = None
    player4: str | None = None
    team1_score: int | None = None
    team2_score: int | None = None
    match_date: str | None = None
    location: str = ""
    notes: str = ""
    game_scores: tuple[tuple[int | None, int | None], ...] = ()
    player_overrides: dict[str, PlayerOverride] = field(default_factory=dict, hash=False)

    @property
    def is_doubles(self) -> bool:
        return self.match_type == "doubles"

    @property
    def team1(self) -> list[str]:
        return [code for code in (self.player1, self.player3) if code]

    @property
    def team2(self) -> list[str]:
        return [code for code in (self.player2, self.player4) if code]

    @property
    def passport_codes(self) -> list[str]:
        return [
            code
            for code in (self.player1, self.player2, self.player3, self.player4)
            if code
        ]

    @property
    def has_complete_score(self) -> bool:
        return self.team1_score is not None and self.team2_score is not None

    @property
    def game_details(self) -> str:
        if self.has_complete_score:
            return f"{self.team1_score}-{self.team2_score}"
        return ""


@dataclass(frozen=True)
class ResolvedPlayer:
    passport_code: str
    player_id: int
    display_name: str
    current_points: Decimal
    gender: str | None


@dataclass(frozen=True)
class PointsCalculation:
    can_calculate: bool
    reason: str | None = None
    winner: str | None = None
    multiplier: Decimal = Decimal("1.0")
    player_points: dict[str, Decimal] = field(default_factory=dict, hash=False)
    player_pickle_points: dict[str, int] = field(default_factory=dict, hash=False)
    total_points: Decimal | None = None
    pickle_points_awarded: int | None = None
    cross_gender_bonus: bool = False

    @classmethod
    def not_calculable(cls, reason: str, multiplier: Decimal = Decimal("1.0")) -> PointsCalculation:
        return cls(can_calculate=False, reason=reason, multiplier=multiplier)
