"""SQLite repositories for core entities."""

from __future__ import annotations

import sqlite3
from typing import Any, Iterable


def _row_to_dict(row: sqlite3.Row | None) -> dict[str, Any] | None:
    if row is None:
        return None
    return dict(row)


class PlayerRepository:
    """Repository for the player directory, keyed by passport code."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def create(self, data: dict[str, Any]) -> int:
        cursor = self._connection.execute(
            """
            INSERT INTO players (
                passport_code,
                username,
                display_name,
                gender,
                birth_date,
                ranking_points,
                pickle_points
            )
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.get("passport_code"),
                data.get("username"),
                data.get("display_name"),
                data.get("gender"),
                data.get("birth_date"),
                data.get("ranking_points") or 0,
                data.get("pickle_points") or 0,
            ),
        )
        self._connection.commit()
        return int(cursor.lastrowid)

    def get(self, player_id: int) -> dict[str, Any] | None:
        row = self._connection.execute(
            "SELECT * FROM players WHERE id = ?", (player_id,)
        ).fetchone()
        return _row_to_dict(row)

    def get_by_passport_code(self, passport_code: str) -> dict[str, Any] | None:
        row = self._connection.execute(
            "SELECT * FROM players WHERE passport_code = ?", (passport_code,)
        ).fetchone()
        return _row_to_dict(row)

    def list(self) -> list[dict[str, Any]]:
        rows = self._connection.execute(
            "SELECT * FROM players ORDER BY passport_code"
        ).fetchall()
        return [dict(row) for row in rows]

    def list_by_passport_codes(self, passport_codes: Iterable[str]) -> list[dict[str, Any]]:
        codes = sorted(set(passport_codes))
        if not codes:
            return []
        placeholders = ", ".join("?" for _ in codes)
        rows = self._connection.execute(
            f"SELECT * FROM players WHERE passport_code IN ({placeholders})",
            codes,
        ).fetchall()
        return [dict(row) for row in rows]

    def award_match(
        self,
        player_id: int,
        *,
        ranking_points: float,
        pickle_points: int,
        won: bool,
        match_date: str | None,
    ) -> None:
        """Add match points to a player. Caller owns the transaction."""
        self._connection.execute(
            """
            UPDATE players
            SET ranking_points = ranking_points + ?,
                pickle_points = pickle_points + ?,
                total_matches = total_matches + 1,
                matches_won = matches_won + ?,
                last_match_date = COALESCE(?, last_match_date),
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (ranking_points, pickle_points, 1 if won else 0, match_date, player_id),
        )

    def apply_profile_overrides(
        self,
        player_id: int,
        *,
        gender: str | None = None,
        birth_date: str | None = None,
    ) -> None:
        """Overwrite gender/birth date only with the values that are given."""
        if gender is None and birth_date is None:
            return
        self._connection.execute(
            """
            UPDATE players
            SET gender = COALESCE(?, gender),
                birth_date = COALESCE(?, birth_date),
                updated_at = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (gender, birth_date, player_id),
        )


class CompetitionRepository:
    """Repository for competitions that carry a points multiplier."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def create(self, data: dict[str, Any]) -> int:
        cursor = self._connection.execute(
            "INSERT INTO competitions (name, points_multiplier) VALUES (?, ?)",
            (data.get("name"), data.get("points_multiplier", 1.0)),
        )
        self._connection.commit()
        return int(cursor.lastrowid)

    def list(self) -> list[dict[str, Any]]:
        rows = self._connection.execute(
            "SELECT * FROM competitions ORDER BY name"
        ).fetchall()
        return [dict(row) for row in rows]

    def multipliers_by_name(self) -> dict[str, float]:
        return {
            str(item["name"]): float(item["points_multiplier"])
            for item in self.list()
        }


class TournamentRepository:
    """Repository for tournaments created by bulk imports."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def get_by_name(self, name: str) -> dict[str, Any] | None:
        row = self._connection.execute(
            "SELECT * FROM tournaments WHERE name = ?", (name,)
        ).fetchone()
        return _row_to_dict(row)

    def get_or_create(self, data: dict[str, Any]) -> tuple[int, bool]:
        """Return ``(tournament_id, created)``."""
        existing = self.get_by_name(str(data.get("name")))
        if existing is not None:
            return int(existing["id"]), False
        cursor = self._connection.execute(
            """
            INSERT INTO tournaments (name, description, start_date, source_file)
            VALUES (?, ?, ?, ?)
            """,
            (
                data.get("name"),
                data.get("description"),
                data.get("start_date"),
                data.get("source_file"),
            ),
        )
        self._connection.commit()
        return int(cursor.lastrowid), True

    def list(self) -> list[dict[str, Any]]:
        rows = self._connection.execute(
            "SELECT * FROM tournaments ORDER BY start_date DESC, name"
        ).fetchall()
        return [dict(row) for row in rows]


class MatchRepository:
    """Repository for committed matches."""

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._connection = connection

    def create(self, data: dict[str, Any]) -> int:
        """Insert a match. Caller owns the transaction."""
        cursor = self._connection.execute(
            """
            INSERT INTO matches (
                tournament_id,
                player_one_id,
                player_two_id,
                player_one_partner_id,
                player_two_partner_id,
                score_player_one,
                score_player_two,
                winner_team,
                format_type,
                match_date,
                location,
                notes,
                points_awarded,
                pickle_points_awarded,
                cross_gender_bonus,
                idempotency_key
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                data.get("tournament_id"),
                data.get("player_one_id"),
                data.get("player_two_id"),
                data.get("player_one_partner_id"),
                data.get("player_two_partner_id"),
                data.get("score_player_one"),
                data.get("score_player_two"),
                data.get("winner_team"),
                data.get("format_type"),
                data.get("match_date"),
                data.get("location"),
                data.get("notes"),
                data.get("points_awarded") or 0,
                data.get("pickle_points_awarded") or 0,
                1 if data.get("cross_gender_bonus") else 0,
                data.get("idempotency_key"),
            ),
        )
        return int(cursor.lastrowid)

    def get(self, match_id: int) -> dict[str, Any] | None:
        row = self._connection.execute(
            "SELECT * FROM matches WHERE id = ?", (match_id,)
        ).fetchone()
        return _row_to_dict(row)

    def exists_with_key(self, idempotency_key: str) -> bool:
        row = self._connection.execute(
            "SELECT 1 FROM matches WHERE idempotency_key = ? LIMIT 1",
            (idempotency_key,),
        ).fetchone()
        return row is not None

    def list(self, *, tournament_id: int | None = None) -> list[dict[str, Any]]:
        clauses: list[str] = []
        params: list[Any] = []
        if tournament_id is not None:
            clauses.append("tournament_id = ?")
            params.append(tournament_id)

        where_sql = ""
        if clauses:
            where_sql = "WHERE " + " AND ".join(clauses)

        rows = self._connection.execute(
            f"SELECT * FROM matches {where_sql} ORDER BY match_date, id",
            params,
        ).fetchall()
        return [dict(row) for row in rows]

    def count(self) -> int:
        row = self._connection.execute("SELECT COUNT(*) FROM matches").fetchone()
        return int(row[0]) if row else 0
