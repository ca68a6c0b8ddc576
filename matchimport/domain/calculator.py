"""Per-match ranking and pickle points."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from matchimport.domain.models import PointsCalculation, RawMatchRow, ResolvedPlayer
from matchimport.domain.points import (
    PLAYERS_PER_MATCH,
    is_cross_gender_pairing,
    normalize_gender,
    pickle_points_for,
    player_match_points,
    round_points,
    to_multiplier,
)

TEAM_1 = "Team 1"
TEAM_2 = "Team 2"

SCORE_MISSING = "score missing"


def winning_team(row: RawMatchRow) -> str | None:
    if not row.has_complete_score or row.team1_score == row.team2_score:
        return None
    return TEAM_1 if row.team1_score > row.team2_score else TEAM_2


def effective_gender(row: RawMatchRow, player: ResolvedPlayer) -> str | None:
    """Gender from the row override when present, otherwise from the directory."""
    override = row.player_overrides.get(player.passport_code)
    if override is not None and override.gender:
        return normalize_gender(override.gender)
    return normalize_gender(player.gender)


def calculate_match_points(
    row: RawMatchRow,
    players: Mapping[str, ResolvedPlayer | None],
    multiplier: object | None = None,
) -> PointsCalculation:
    """Compute the points a row would award.

    ``players`` maps passport codes to resolved players; a missing key or a
    None value means the code is unmatched. Rows that cannot be calculated
    get a placeholder with the reason and no points.
    """
    tab_multiplier = to_multiplier(multiplier)

    expected = PLAYERS_PER_MATCH.get(row.match_type)
    if expected is None or len(row.passport_codes) != expected:
        return PointsCalculation.not_calculable("match type could not be classified", tab_multiplier)

    if len(set(row.passport_codes)) != len(row.passport_codes):
        return PointsCalculation.not_calculable("duplicate player in match", tab_multiplier)

    unresolved = [code for code in row.passport_codes if players.get(code) is None]
    if unresolved:
        return PointsCalculation.not_calculable(
            f"unmatched passport codes: {', '.join(unresolved)}", tab_multiplier
        )

    if not row.has_complete_score:
        return PointsCalculation.not_calculable(SCORE_MISSING, tab_multiplier)

    winner = winning_team(row)
    if winner is None:
        return PointsCalculation.not_calculable("tied score", tab_multiplier)

    team1 = [players[code] for code in row.team1]
    team2 = [players[code] for code in row.team2]
    cross_gender = row.is_doubles and is_cross_gender_pairing(
        [effective_gender(row, player) for player in team1],
        [effective_gender(row, player) for player in team2],
    )

    player_points: dict[str, Decimal] = {}
    for team, team_name in ((team1, TEAM_1), (team2, TEAM_2)):
        for player in team:
            player_points[player.passport_code] = player_match_points(
                won=team_name == winner,
                gender=effective_gender(row, player),
                current_points=player.current_points,
                cross_gender=cross_gender,
                multiplier=tab_multiplier,
            )

    player_pickle_points = {code: pickle_points_for(value) for code, value in player_points.items()}
    total = round_points(sum(player_points.values(), Decimal(0)))
    return PointsCalculation(
        can_calculate=True,
        winner=winner,
        multiplier=tab_multiplier,
        player_points=player_points,
        player_pickle_points=player_pickle_points,
        total_points=total,
        pickle_points_awarded=sum(player_pickle_points.values()),
        cross_gender_bonus=cross_gender,
    )
