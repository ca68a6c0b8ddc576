"""Commit mode: persist matches from a workbook and award points.

Rows are independent: each one is written in its own transaction, so a bad
row is reported and skipped while the rest of the file is still imported.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO

from matchimport.db.repositories import (
    CompetitionRepository,
    MatchRepository,
    PlayerRepository,
    TournamentRepository,
)
from matchimport.domain.calculator import TEAM_1, calculate_match_points
from matchimport.domain.models import RawMatchRow, ResolvedPlayer
from matchimport.domain.signature import match_signature
from matchimport.services.analysis import tab_multipliers
from matchimport.services.audit_log import ERROR, IMPORT_FILE, AuditLogService
from matchimport.services.player_resolver import to_resolved_player
from matchimport.services.workbook_parser import ParsedWorkbook, parse_workbook

logger = logging.getLogger(__name__)


@dataclass
class CommitReport:
    file_name: str
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    tournaments_created: list[str] = field(default_factory=list)
    total_points_awarded: Decimal = Decimal(0)
    success: bool = True


@dataclass(frozen=True)
class CommitFailure:
    file_name: str
    error: str
    message: str
    success: bool = False


def _ensure_tournaments(
    connection: sqlite3.Connection,
    workbook: ParsedWorkbook,
    report: CommitReport,
) -> dict[str, int]:
    tournament_repo = TournamentRepository(connection)
    tournament_ids: dict[str, int] = {}
    for tab in workbook.tabs:
        if not tab.rows:
            continue
        start_date = next((row.match_date for row in tab.rows if row.match_date), None)
        try:
            tournament_id, created = tournament_repo.get_or_create(
                {
                    "name": tab.name,
                    "description": f"Auto-created from bulk import: {workbook.file_name}",
                    "start_date": start_date,
                    "source_file": workbook.file_name,
                }
            )
        except sqlite3.Error as exc:
            logger.error("Failed to create tournament %s: %s", tab.name, exc)
            report.errors.append(f"Failed to create tournament: {tab.name}")
            continue
        tournament_ids[tab.name] = tournament_id
        if created:
            report.tournaments_created.append(tab.name)
    return tournament_ids


def _load_players(player_repo: PlayerRepository, row: RawMatchRow) -> dict[str, ResolvedPlayer | None]:
    players: dict[str, ResolvedPlayer | None] = {}
    for code in row.passport_codes:
        record = player_repo.get_by_passport_code(code)
        players[code] = to_resolved_player(record) if record is not None else None
    return players


def commit_row(
    connection: sqlite3.Connection,
    row: RawMatchRow,
    *,
    tournament_id: int | None,
    multiplier: Decimal,
) -> Decimal | None:
    """Write one match and award its points.

    Returns the ranking points awarded, or None when the match already exists.
    Raises ValueError when the row cannot be imported.
    """
    player_repo = PlayerRepository(connection)
    match_repo = MatchRepository(connection)

    idempotency_key = match_signature(row)
    if match_repo.exists_with_key(idempotency_key):
        logger.info("Skipping duplicate match %s (tab %s row %d)", idempotency_key, row.tab_name, row.row_number)
        return None

    players = _load_players(player_repo, row)
    calculation = calculate_match_points(row, players, multiplier)
    if not calculation.can_calculate:
        raise ValueError(f"cannot import match: {calculation.reason}")

    p1, p2 = players[row.player1], players[row.player2]
    p3 = players[row.player3] if row.player3 else None
    p4 = players[row.player4] if row.player4 else None
    winner_team = 1 if calculation.winner == TEAM_1 else 2
    match_date = row.match_date or date.today().isoformat()

    with connection:
        match_repo.create(
            {
                "tournament_id": tournament_id,
                "player_one_id": p1.player_id,
                "player_two_id": p2.player_id,
                "player_one_partner_id": p3.player_id if p3 else None,
                "player_two_partner_id": p4.player_id if p4 else None,
                "score_player_one": row.team1_score,
                "score_player_two": row.team2_score,
                "winner_team": winner_team,
                "format_type": row.match_type,
                "match_date": match_date,
                "location": row.location or None,
                "notes": f"BULK IMPORT [{row.tab_name}]: {row.notes} [{row.game_details}]".strip(),
                "points_awarded": float(calculation.total_points),
                "pickle_points_awarded": calculation.pickle_points_awarded,
                "cross_gender_bonus": calculation.cross_gender_bonus,
                "idempotency_key": idempotency_key,
            }
        )
        for code in row.passport_codes:
            player = players[code]
            override = row.player_overrides.get(code)
            if override is not None:
                player_repo.apply_profile_overrides(
                    player.player_id,
                    gender=override.gender,
                    birth_date=override.birth_date,
                )
            player_repo.award_match(
                player.player_id,
                ranking_points=float(calculation.player_points[code]),
                pickle_points=calculation.player_pickle_points[code],
                won=(code in row.team1) == (winner_team == 1),
                match_date=match_date,
            )
    return calculation.total_points


def commit_workbook(connection: sqlite3.Connection, workbook: ParsedWorkbook) -> CommitReport:
    report = CommitReport(file_name=workbook.file_name, warnings=list(workbook.warnings))
    tournament_ids = _ensure_tournaments(connection, workbook, report)
    multipliers = tab_multipliers(workbook, CompetitionRepository(connection).multipliers_by_name())

    for row in workbook.rows:
        try:
            points = commit_row(
                connection,
                row,
                tournament_id=tournament_ids.get(row.tab_name),
                multiplier=multipliers[row.tab_name],
            )
        except Exception as exc:  # noqa: BLE001
            logger.warning("Row %d [%s] failed: %s", row.row_number, row.tab_name, exc)
            report.failed += 1
            report.errors.append(f"Row {row.row_number} [{row.tab_name}]: {exc}")
            continue
        if points is None:
            report.skipped += 1
            continue
        report.successful += 1
        report.total_points_awarded += points

    return report


def commit_excel(
    source: str | Path | BinaryIO,
    *,
    connection: sqlite3.Connection,
    file_name: str | None = None,
) -> CommitReport | CommitFailure:
    audit_log = AuditLogService(connection)
    workbook = parse_workbook(source, file_name=file_name)
    if not workbook.ok:
        message = "; ".join(workbook.errors)
        audit_log.record(ERROR, f"Import failed: {message}", file_name=workbook.file_name, level="error")
        return CommitFailure(
            file_name=workbook.file_name,
            error="Failed to process Excel file",
            message=message,
        )

    report = commit_workbook(connection, workbook)
    logger.info(
        "Imported %s: %d successful, %d failed, %d skipped",
        report.file_name,
        report.successful,
        report.failed,
        report.skipped,
    )
    audit_log.record(
        IMPORT_FILE,
        f"{report.successful} successful, {report.failed} failed, {report.skipped} skipped",
        file_name=report.file_name,
        level="warning" if report.failed else "info",
        failed=report.failed,
        tournaments_created=report.tournaments_created,
        total_points_awarded=report.total_points_awarded,
    )
    return report
