"""Analysis mode: parse, resolve and score a workbook without importing it."""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import BinaryIO, Mapping

from matchimport.db.repositories import CompetitionRepository, PlayerRepository
from matchimport.domain.calculator import SCORE_MISSING, calculate_match_points
from matchimport.domain.models import PointsCalculation, RawMatchRow, ResolvedPlayer
from matchimport.domain.points import DOUBLES, SINGLES, to_multiplier
from matchimport.domain.signature import match_signature
from matchimport.services.audit_log import ANALYZE_FILE, ERROR, AuditLogService
from matchimport.services.player_resolver import PlayerResolver, distinct_passport_codes
from matchimport.services.workbook_parser import ParsedWorkbook, parse_workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchAnalysis:
    row: RawMatchRow
    calculation: PointsCalculation


@dataclass(frozen=True)
class TabSummary:
    tab_name: str
    match_count: int
    singles_count: int
    doubles_count: int
    multiplier: Decimal


@dataclass(frozen=True)
class AnalysisSummary:
    total_tabs: int
    total_matches: int
    singles_matches: int
    doubles_matches: int
    unique_players: int
    matched_players: int
    unmatched_players: int
    total_ranking_points_to_award: Decimal
    total_pickle_points_to_award: int


@dataclass
class AnalysisResult:
    file_name: str
    summary: AnalysisSummary
    tab_breakdown: list[TabSummary]
    matched: list[ResolvedPlayer]
    unmatched: list[str]
    matches: list[MatchAnalysis]
    warnings: list[str] = field(default_factory=list)
    success: bool = True
    analysis_mode: bool = True

    @property
    def unmatched_count(self) -> int:
        return len(self.unmatched)

    @property
    def ready_to_import(self) -> bool:
        return self.unmatched_count == 0 and all(
            item.calculation.can_calculate for item in self.matches
        )


@dataclass(frozen=True)
class AnalysisFailure:
    file_name: str
    error: str
    message: str
    success: bool = False


def tab_multipliers(
    workbook: ParsedWorkbook,
    competition_multipliers: Mapping[str, object] | None = None,
) -> dict[str, Decimal]:
    """Multiplier per tab: the linked competition's, or 1.0."""
    competition_multipliers = competition_multipliers or {}
    return {
        tab.name: to_multiplier(competition_multipliers.get(tab.name))
        for tab in workbook.tabs
    }


def _duplicate_warnings(rows: list[RawMatchRow]) -> list[str]:
    warnings: list[str] = []
    first_seen: dict[str, RawMatchRow] = {}
    for row in rows:
        signature = match_signature(row)
        original = first_seen.get(signature)
        if original is None:
            first_seen[signature] = row
            continue
        warnings.append(
            f"Tab '{row.tab_name}' row {row.row_number}: duplicate of tab '{original.tab_name}' "
            f"row {original.row_number}, it will be imported once"
        )
    return warnings


def analyze_workbook(
    workbook: ParsedWorkbook,
    resolver: PlayerResolver,
    multipliers: Mapping[str, Decimal] | None = None,
) -> AnalysisResult:
    """Build the analysis report for an already parsed workbook."""
    multipliers = multipliers or tab_multipliers(workbook)
    rows = workbook.rows
    codes = distinct_passport_codes(rows)
    resolver.resolve_all(codes)

    warnings = list(workbook.warnings)
    matches: list[MatchAnalysis] = []
    for row in rows:
        calculation = calculate_match_points(
            row,
            resolver.resolve_all(row.passport_codes),
            multipliers.get(row.tab_name),
        )
        # the parser already warned about unreadable scores
        if not calculation.can_calculate and calculation.reason != SCORE_MISSING:
            warnings.append(
                f"Tab '{row.tab_name}' row {row.row_number}: cannot calculate points ({calculation.reason})"
            )
        matches.append(MatchAnalysis(row=row, calculation=calculation))

    unmatched = resolver.unmatched
    if unmatched:
        warnings.append(
            f"{len(unmatched)} passport codes not found in database. "
            "These matches cannot be imported until players are registered."
        )
    warnings.extend(_duplicate_warnings(rows))

    calculable = [item.calculation for item in matches if item.calculation.can_calculate]
    summary = AnalysisSummary(
        total_tabs=len(workbook.tabs),
        total_matches=len(rows),
        singles_matches=sum(1 for row in rows if row.match_type == SINGLES),
        doubles_matches=sum(1 for row in rows if row.match_type == DOUBLES),
        unique_players=len(codes),
        matched_players=len(resolver.matched),
        unmatched_players=len(unmatched),
        total_ranking_points_to_award=sum(
            (item.total_points for item in calculable), Decimal(0)
        ),
        total_pickle_points_to_award=sum(item.pickle_points_awarded for item in calculable),
    )
    tab_breakdown = [
        TabSummary(
            tab_name=tab.name,
            match_count=len(tab.rows),
            singles_count=tab.singles_count,
            doubles_count=tab.doubles_count,
            multiplier=multipliers.get(tab.name, to_multiplier(None)),
        )
        for tab in workbook.tabs
    ]

    return AnalysisResult(
        file_name=workbook.file_name,
        summary=summary,
        tab_breakdown=tab_breakdown,
        matched=resolver.matched,
        unmatched=unmatched,
        matches=matches,
        warnings=warnings,
    )


def analyze_excel(
    source: str | Path | BinaryIO,
    *,
    connection: sqlite3.Connection,
    file_name: str | None = None,
) -> AnalysisResult | AnalysisFailure:
    """Analyze an uploaded workbook against the player directory.

    Recoverable problems end up in the report; only an unreadable or empty
    workbook yields an AnalysisFailure.
    """
    audit_log = AuditLogService(connection)
    workbook = parse_workbook(source, file_name=file_name)
    if not workbook.ok:
        message = "; ".join(workbook.errors)
        audit_log.record(ERROR, f"Analysis failed: {message}", file_name=workbook.file_name, level="error")
        return AnalysisFailure(
            file_name=workbook.file_name,
            error="Failed to analyze Excel file",
            message=message,
        )

    resolver = PlayerResolver.from_repository(
        PlayerRepository(connection),
        distinct_passport_codes(workbook.rows),
    )
    multipliers = tab_multipliers(
        workbook,
        CompetitionRepository(connection).multipliers_by_name(),
    )
    result = analyze_workbook(workbook, resolver, multipliers)

    summary = result.summary
    logger.info(
        "Analyzed %s: %d matches, %d unmatched codes, ready=%s",
        result.file_name,
        summary.total_matches,
        summary.unmatched_players,
        result.ready_to_import,
    )
    audit_log.record(
        ANALYZE_FILE,
        f"{summary.total_matches} matches in {summary.total_tabs} tabs",
        file_name=result.file_name,
        level="info" if result.ready_to_import else "warning",
        unmatched=result.unmatched,
        ready_to_import=result.ready_to_import,
    )
    return result
