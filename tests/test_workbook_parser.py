from __future__ import annotations

from datetime import datetime
from io import BytesIO

from matchimport.domain.models import PlayerOverride
from matchimport.services.workbook_parser import (
    NO_MATCHES_ERROR,
    UNREADABLE_ERROR,
    detect_headers,
    normalize_passport_code,
    parse_int,
    parse_match_date,
    parse_workbook,
)
from tests.helpers.xlsx_factory import (
    MATCH_HEADERS,
    make_match_workbook_xlsx,
    make_not_a_workbook,
    make_single_table_xlsx,
)


def test_parse_workbook_one_tab_per_sheet(tmp_path) -> None:
    path = make_match_workbook_xlsx(
        tmp_path,
        {
            "Open": (
                MATCH_HEADERS,
                [
                    ["pkl-1", "PKL-2", None, None, 11, 7, "2025-03-15"],
                    ["PKL-3", "PKL-4", None, None, 5, 11, "2025-03-15"],
                ],
            ),
            "Juniors": (
                MATCH_HEADERS,
                [["PKL-5", "PKL-6", "PKL-7", "PKL-8", 11, 9, "2025-03-16"]],
            ),
        },
    )

    workbook = parse_workbook(path)

    assert workbook.ok
    assert workbook.warnings == []
    assert [tab.name for tab in workbook.tabs] == ["Open", "Juniors"]
    assert workbook.tabs[0].singles_count == 2
    assert workbook.tabs[1].doubles_count == 1

    first = workbook.rows[0]
    assert first.tab_name == "Open"
    assert first.row_number == 2
    assert first.player1 == "PKL-1"
    assert first.team1 == ["PKL-1"]
    assert (first.team1_score, first.team2_score) == (11, 7)
    assert first.match_date == "2025-03-15"

    doubles = workbook.tabs[1].rows[0]
    assert doubles.team1 == ["PKL-5", "PKL-7"]
    assert doubles.team2 == ["PKL-6", "PKL-8"]


def test_parse_workbook_accepts_stream(tmp_path) -> None:
    path = make_single_table_xlsx(
        tmp_path, MATCH_HEADERS, [["A1", "B1", None, None, 11, 2, None]], sheet="Open"
    )

    workbook = parse_workbook(BytesIO(path.read_bytes()), file_name="upload.xlsx")

    assert workbook.file_name == "upload.xlsx"
    assert len(workbook.rows) == 1


def test_rows_with_wrong_player_count_are_excluded(tmp_path) -> None:
    path = make_single_table_xlsx(
        tmp_path,
        MATCH_HEADERS,
        [
            ["A1", "B1", "C1", None, 11, 7, None],
            ["A1", None, None, None, 11, 7, None],
            ["A1", "B1", None, None, 11, 7, None],
        ],
        sheet="Open",
    )

    workbook = parse_workbook(path)

    assert len(workbook.rows) == 1
    assert "Tab 'Open' row 2: expected 2 or 4 players, found 3" in workbook.warnings
    assert "Tab 'Open' row 3: expected 2 or 4 players, found 1" in workbook.warnings


def test_rows_repeating_a_player_are_excluded(tmp_path) -> None:
    path = make_single_table_xlsx(
        tmp_path,
        MATCH_HEADERS,
        [
            ["PKL-1", "pkl-1", None, None, 11, 7, None],
            ["PKL-1", "PKL-2", "PKL-2", "PKL-3", 11, 7, None],
            ["PKL-1", "PKL-2", None, None, 11, 7, None],
        ],
        sheet="Open",
    )

    workbook = parse_workbook(path)

    assert [row.row_number for row in workbook.rows] == [4]
    assert workbook.warnings == [
        "Tab 'Open' row 2: player listed more than once (PKL-1)",
        "Tab 'Open' row 3: player listed more than once (PKL-2)",
    ]


def test_invalid_scores_keep_row_with_missing_score(tmp_path) -> None:
    path = make_single_table_xlsx(
        tmp_path,
        MATCH_HEADERS,
        [
            ["A1", "B1", None, None, None, 7, None],
            ["A1", "B1", None, None, -3, 7, None],
            ["A1", "B1", None, None, "11", "7.5", None],
        ],
        sheet="Open",
    )

    workbook = parse_workbook(path)

    assert len(workbook.rows) == 3
    assert workbook.rows[0].team1_score is None
    assert workbook.rows[1].team1_score is None
    assert workbook.rows[2].team1_score == 11
    assert workbook.rows[2].team2_score is None
    assert not workbook.rows[2].has_complete_score
    assert sum("is missing or not a non-negative integer" in warning for warning in workbook.warnings) == 3


def test_empty_rows_and_leading_title_are_skipped(tmp_path) -> None:
    path = make_single_table_xlsx(
        tmp_path,
        ["Spring Open results"],
        [
            MATCH_HEADERS,
            [],
            ["A1", "B1", None, None, 11, 7, None],
            [None, None, None, None, None, None, None],
        ],
        sheet="Open",
    )

    workbook = parse_workbook(path)

    assert workbook.warnings == []
    assert len(workbook.rows) == 1
    assert workbook.rows[0].row_number == 4


def test_sheet_without_header_is_not_a_tab(tmp_path) -> None:
    path = make_match_workbook_xlsx(
        tmp_path,
        {
            "Open": (MATCH_HEADERS, [["A1", "B1", None, None, 11, 7, None]]),
            "Notes": (["Organizer", "Phone"], [["Jane", "555-0100"]]),
        },
    )

    workbook = parse_workbook(path)

    assert [tab.name for tab in workbook.tabs] == ["Open"]
    assert "Tab 'Notes': no match header row found" in workbook.warnings


def test_workbook_without_matches_is_an_error(tmp_path) -> None:
    path = make_single_table_xlsx(tmp_path, MATCH_HEADERS, [], sheet="Open")

    workbook = parse_workbook(path)

    assert not workbook.ok
    assert workbook.errors == [NO_MATCHES_ERROR]


def test_non_spreadsheet_is_an_error(tmp_path) -> None:
    workbook = parse_workbook(make_not_a_workbook(tmp_path))

    assert workbook.errors == [UNREADABLE_ERROR]
    assert workbook.tabs == []


def test_missing_file_is_an_error(tmp_path) -> None:
    workbook = parse_workbook(tmp_path / "missing.xlsx")

    assert workbook.errors == [UNREADABLE_ERROR]
    assert workbook.file_name == "missing.xlsx"


def test_chinese_headers_are_recognized(tmp_path) -> None:
    headers = ["第一队选手一护照码", "第二队选手一护照码", "第一队得分", "第二队得分", "比赛日期", "场地"]
    path = make_single_table_xlsx(
        tmp_path, headers, [["A1", "B1", 11, 4, "2025-05-01", "一号场"]], sheet="公开赛"
    )

    workbook = parse_workbook(path)

    row = workbook.rows[0]
    assert row.tab_name == "公开赛"
    assert row.match_type == "singles"
    assert (row.team1_score, row.team2_score) == (11, 4)
    assert row.location == "一号场"


def test_dates_and_overrides(tmp_path) -> None:
    headers = MATCH_HEADERS + ["Player 1 Gender", "Player 1 DOB", "Player 2 Gender", "Player 2 DOB"]
    path = make_single_table_xlsx(
        tmp_path,
        headers,
        [
            ["A1", "B1", None, None, 11, 7, datetime(2025, 3, 15, 10, 30), "F", "2001-02-03", "unknown", "03/02/2001"],
            ["A1", "B1", None, None, 11, 7, "15.03.2025", None, None, None, None],
            ["A1", "B1", None, None, 11, 7, "someday", None, None, None, None],
        ],
        sheet="Open",
    )

    workbook = parse_workbook(path)

    first, second, third = workbook.rows
    assert first.match_date == "2025-03-15"
    assert first.player_overrides == {"A1": PlayerOverride(gender="female", birth_date="2001-02-03")}
    assert second.match_date == "2025-03-15"
    assert third.match_date is None
    assert "Tab 'Open' row 2: unknown gender 'unknown' for player 2 ignored" in workbook.warnings
    assert any("date of birth '03/02/2001'" in warning for warning in workbook.warnings)
    assert "Tab 'Open' row 4: match date 'someday' is not YYYY-MM-DD" in workbook.warnings


def test_game_scores_are_collected(tmp_path) -> None:
    headers = MATCH_HEADERS + ["Game 1 Team 1", "Game 1 Team 2", "Game 2 Team 1", "Game 2 Team 2"]
    path = make_single_table_xlsx(
        tmp_path,
        headers,
        [["A1", "B1", None, None, 2, 0, None, 11, 8, 11, 6]],
        sheet="Open",
    )

    row = parse_workbook(path).rows[0]

    assert row.game_scores == ((11, 8), (11, 6))


def test_detect_headers_uses_first_matching_column() -> None:
    mapping = detect_headers(["P1", "Player 2", "Player 1", "Score 1", " team 2 score "])

    assert mapping["player1"] == 0
    assert mapping["player2"] == 1
    assert mapping["score2"] == 4


def test_cell_level_helpers() -> None:
    assert parse_int(11.0) == 11
    assert parse_int("7") == 7
    assert parse_int("7.5") is None
    assert parse_int(True) is None
    assert normalize_passport_code(123456.0) == "123456"
    assert normalize_passport_code("  pkl-9 ") == "PKL-9"
    assert normalize_passport_code("   ") is None
    assert parse_match_date("2025/03/15") is None
    assert parse_match_date("01/02/2025") == "2025-02-01"
