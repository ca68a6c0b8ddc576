from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import BinaryIO, Iterable
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from matchimport.domain.models import PlayerOverride, RawMatchRow
from matchimport.domain.points import DOUBLES, SINGLES, normalize_gender

logger = logging.getLogger(__name__)

NO_MATCHES_ERROR = "No valid matches found in Excel file"
UNREADABLE_ERROR = "File is not a readable Excel workbook"

PLAYER_KEYS = ("player1", "player2", "player3", "player4")
GAME_COUNT = 3


@dataclass(frozen=True)
class Tab:
    name: str
    rows: list[RawMatchRow]

    @property
    def singles_count(self) -> int:
        return sum(1 for row in self.rows if row.match_type == SINGLES)

    @property
    def doubles_count(self) -> int:
        return sum(1 for row in self.rows if row.match_type == DOUBLES)


@dataclass
class ParsedWorkbook:
    file_name: str
    tabs: list[Tab] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def rows(self) -> list[RawMatchRow]:
        return [row for tab in self.tabs for row in tab.rows]

    @property
    def ok(self) -> bool:
        return not self.errors


def _normalize_header(value: object) -> str:
    if value is None:
        return ""
    text = str(value).strip().lower()
    return "".join(ch for ch in text if ch.isalnum())


def _header_synonyms() -> dict[str, list[str]]:
    synonyms = {
        "player1": ["Player 1", "P1", "Player1", "第一队选手一护照码", "选手一护照码"],
        "player2": ["Player 2", "P2", "Player2", "第二队选手一护照码", "选手二护照码"],
        "player3": ["Player 3", "P3", "Player3", "第一队选手二护照码"],
        "player4": ["Player 4", "P4", "Player4", "第二队选手二护照码"],
        "score1": ["Score 1", "Team 1 Score", "T1", "第一队得分"],
        "score2": ["Score 2", "Team 2 Score", "T2", "第二队得分"],
        "date": ["Date", "Match Date", "比赛日期"],
        "location": ["Location", "Court", "场地"],
        "notes": ["Notes", "Comments", "备注"],
    }
    for number in range(1, 5):
        synonyms[f"player{number}_gender"] = [f"Player {number} Gender", f"P{number} Gender"]
        synonyms[f"player{number}_dob"] = [
            f"Player {number} DOB",
            f"P{number} DOB",
            f"Player {number} Date of Birth",
        ]
    for game in range(1, GAME_COUNT + 1):
        for team in (1, 2):
            synonyms[f"game{game}_team{team}"] = [f"Game {game} Team {team}", f"G{game}T{team}"]
    return synonyms


_NORMALIZED_SYNONYMS = {
    key: {_normalize_header(item) for item in values}
    for key, values in _header_synonyms().items()
}


def detect_headers(row_values: Iterable[object]) -> dict[str, int]:
    mapping: dict[str, int] = {}
    for idx, cell_value in enumerate(row_values):
        normalized = _normalize_header(cell_value)
        if not normalized:
            continue
        for key, options in _NORMALIZED_SYNONYMS.items():
            if normalized in options and key not in mapping:
                mapping[key] = idx
                break
    return mapping


def _is_header_row(mapping: dict[str, int]) -> bool:
    return "player1" in mapping and "player2" in mapping


def _is_row_empty(row_values: Iterable[object]) -> bool:
    for value in row_values:
        if value is None:
            continue
        if str(value).strip() != "":
            return False
    return True


def _normalize_text(value: object | None) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_integer_value(value: object | None) -> tuple[int | None, bool]:
    if value is None or _normalize_text(value) == "":
        return None, False
    if isinstance(value, bool):
        return None, False
    if isinstance(value, int):
        return value, False
    if isinstance(value, float):
        if value.is_integer():
            return int(value), False
        return None, True
    text = _normalize_text(value).replace(",", ".")
    try:
        decimal_value = Decimal(text)
    except InvalidOperation:
        return None, False
    if not decimal_value.is_finite():
        return None, False
    if decimal_value != decimal_value.to_integral_value():
        return None, True
    return int(decimal_value), False


def parse_int(value: object | None) -> int | None:
    """Whole numbers only: ints, integral floats and numeric strings."""
    parsed, has_fraction = _parse_integer_value(value)
    return None if has_fraction else parsed


def parse_score(value: object | None) -> int | None:
    """Scores are non-negative integers; anything else is treated as missing."""
    parsed = parse_int(value)
    if parsed is None or parsed < 0:
        return None
    return parsed


def normalize_passport_code(value: object | None) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = _normalize_text(value).upper()
    return text or None


def parse_iso_date(value: object | None) -> str | None:
    """Return ``YYYY-MM-DD`` for date cells and ISO strings, None otherwise."""
    if value is None or _normalize_text(value) == "":
        return None
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    try:
        return datetime.strptime(_normalize_text(value), "%Y-%m-%d").date().isoformat()
    except ValueError:
        return None


def parse_match_date(value: object | None) -> str | None:
    parsed = parse_iso_date(value)
    if parsed is not None:
        return parsed
    text = _normalize_text(value)
    for fmt in ("%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


def _cell(row_values: list[object], mapping: dict[str, int], key: str) -> object | None:
    idx = mapping.get(key)
    if idx is None or idx >= len(row_values):
        return None
    return row_values[idx]


def _parse_overrides(
    row_values: list[object],
    mapping: dict[str, int],
    codes: list[str | None],
    location: str,
    warnings: list[str],
) -> dict[str, PlayerOverride]:
    overrides: dict[str, PlayerOverride] = {}
    for number, code in enumerate(codes, start=1):
        if not code:
            continue
        raw_gender = _cell(row_values, mapping, f"player{number}_gender")
        raw_dob = _cell(row_values, mapping, f"player{number}_dob")

        gender = None
        if _normalize_text(raw_gender):
            gender = normalize_gender(raw_gender)
            if gender is None:
                warnings.append(f"{location}: unknown gender '{raw_gender}' for player {number} ignored")

        birth_date = None
        if _normalize_text(raw_dob):
            birth_date = parse_iso_date(raw_dob)
            if birth_date is None:
                warnings.append(
                    f"{location}: date of birth '{raw_dob}' for player {number} is not YYYY-MM-DD, ignored"
                )

        if gender or birth_date:
            overrides[code] = PlayerOverride(gender=gender, birth_date=birth_date)
    return overrides


def _parse_game_scores(
    row_values: list[object],
    mapping: dict[str, int],
) -> tuple[tuple[int | None, int | None], ...]:
    games: list[tuple[int | None, int | None]] = []
    for game in range(1, GAME_COUNT + 1):
        team1 = parse_score(_cell(row_values, mapping, f"game{game}_team1"))
        team2 = parse_score(_cell(row_values, mapping, f"game{game}_team2"))
        if team1 is None and team2 is None:
            continue
        games.append((team1, team2))
    return tuple(games)


def parse_match_row(
    tab_name: str,
    row_number: int,
    row_values: list[object],
    mapping: dict[str, int],
    warnings: list[str],
) -> RawMatchRow | None:
    """Turn one sheet row into a RawMatchRow, or None when it must be excluded."""
    location = f"Tab '{tab_name}' row {row_number}"
    codes = [normalize_passport_code(_cell(row_values, mapping, key)) for key in PLAYER_KEYS]
    player1, player2, player3, player4 = codes

    if player1 and player2 and not player3 and not player4:
        match_type = SINGLES
    elif all(codes):
        match_type = DOUBLES
    else:
        found = sum(1 for code in codes if code)
        warnings.append(f"{location}: expected 2 or 4 players, found {found}")
        return None

    present = [code for code in codes if code]
    repeated = sorted({code for code in present if present.count(code) > 1})
    if repeated:
        warnings.append(f"{location}: player listed more than once ({', '.join(repeated)})")
        return None

    scores: list[int | None] = []
    for team in (1, 2):
        raw_score = _cell(row_values, mapping, f"score{team}")
        score = parse_score(raw_score)
        if score is None:
            warnings.append(
                f"{location}: score for team {team} is missing or not a non-negative integer ({raw_score})"
            )
        scores.append(score)

    raw_date = _cell(row_values, mapping, "date")
    match_date = parse_match_date(raw_date)
    if match_date is None and _normalize_text(raw_date):
        warnings.append(f"{location}: match date '{raw_date}' is not YYYY-MM-DD")

    return RawMatchRow(
        tab_name=tab_name,
        row_number=row_number,
        match_type=match_type,
        player1=player1,
        player2=player2,
        player3=player3,
        player4=player4,
        team1_score=scores[0],
        team2_score=scores[1],
        match_date=match_date,
        location=_normalize_text(_cell(row_values, mapping, "location")),
        notes=_normalize_text(_cell(row_values, mapping, "notes")),
        game_scores=_parse_game_scores(row_values, mapping),
        player_overrides=_parse_overrides(row_values, mapping, codes, location, warnings),
    )


def _parse_sheet(sheet, warnings: list[str]) -> Tab | None:
    mapping: dict[str, int] = {}
    rows: list[RawMatchRow] = []
    for row_number, row in enumerate(sheet.iter_rows(values_only=True), start=1):
        row_values = list(row)
        if not mapping:
            candidate = detect_headers(row_values)
            if _is_header_row(candidate):
                mapping = candidate
            continue
        if _is_row_empty(row_values):
            continue
        parsed = parse_match_row(sheet.title, row_number, row_values, mapping, warnings)
        if parsed is not None:
            rows.append(parsed)

    if not mapping:
        warnings.append(f"Tab '{sheet.title}': no match header row found")
        return None
    return Tab(name=sheet.title, rows=rows)


def parse_workbook(source: str | Path | BinaryIO, file_name: str | None = None) -> ParsedWorkbook:
    """Parse every sheet of an uploaded workbook into tabs of match rows.

    Never raises for bad input: an unreadable file or a workbook without any
    match rows comes back with ``errors`` filled in.
    """
    if file_name is None:
        file_name = Path(source).name if isinstance(source, (str, Path)) else "upload.xlsx"
    result = ParsedWorkbook(file_name=file_name)

    try:
        workbook = load_workbook(source, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as exc:
        logger.warning("Could not open workbook %s: %s", file_name, exc)
        result.errors.append(UNREADABLE_ERROR)
        return result

    try:
        logger.info("Workbook %s has %d sheets: %s", file_name, len(workbook.sheetnames), ", ".join(workbook.sheetnames))
        for sheet in workbook.worksheets:
            tab = _parse_sheet(sheet, result.warnings)
            if tab is not None:
                result.tabs.append(tab)
    finally:
        workbook.close()

    if not result.rows:
        result.errors.append(NO_MATCHES_ERROR)
    logger.info(
        "Parsed %d matches from %d tabs in %s (%d warnings)",
        len(result.rows),
        len(result.tabs),
        file_name,
        len(result.warnings),
    )
    return result
