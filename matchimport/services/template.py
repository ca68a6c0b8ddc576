from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

TEMPLATE_FILENAME = "pickle-plus-bulk-match-template.xlsx"
EXAMPLE_SHEET_TITLE = "Open Championship"

TEMPLATE_COLUMNS = [
    "Player 1",
    "Player 2",
    "Player 3",
    "Player 4",
    "Score 1",
    "Score 2",
    "Date",
    "Location",
    "Notes",
    "Player 1 Gender",
    "Player 2 Gender",
    "Player 3 Gender",
    "Player 4 Gender",
]

EXAMPLE_ROWS = [
    ["PKL-000001", "PKL-000002", None, None, 11, 7, "2025-03-15", "Court 1", "Singles final", None, None, None, None],
    ["PKL-000003", "PKL-000004", "PKL-000005", "PKL-000006", 11, 9, "2025-03-15", "Court 2", "Mixed doubles", "male", "male", "female", "female"],
]

INSTRUCTIONS = [
    "Each sheet is one tournament; the sheet name becomes the tournament name.",
    "Singles: fill Player 1 and Player 2. Doubles: fill all four players.",
    "Team 1 is Player 1 + Player 3, Team 2 is Player 2 + Player 4.",
    "Players are identified by passport code and must already be registered.",
    "Scores are whole non-negative numbers; ties cannot be imported.",
    "Dates use YYYY-MM-DD. Gender and DOB columns are optional and update the player profile.",
    "Analyze the file first, then import it once all players are matched.",
]

_HEADER_FILL = PatternFill(start_color="1F4E78", end_color="1F4E78", fill_type="solid")


def _write_header(sheet, columns: list[str]) -> None:
    for column, header_text in enumerate(columns, start=1):
        cell = sheet.cell(row=1, column=column, value=header_text)
        cell.font = Font(bold=True, color="FFFFFF")
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.fill = _HEADER_FILL
    sheet.freeze_panes = "A2"


def _fit_columns(sheet, column_count: int) -> None:
    for column_index in range(1, column_count + 1):
        max_length = 0
        for row_index in range(1, sheet.max_row + 1):
            value = sheet.cell(row=row_index, column=column_index).value
            if value is None:
                continue
            max_length = max(max_length, len(str(value)))
        sheet.column_dimensions[get_column_letter(column_index)].width = min(max_length + 2, 80)


def build_template() -> BytesIO:
    """Build the downloadable import template with example rows and instructions."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = EXAMPLE_SHEET_TITLE
    _write_header(sheet, TEMPLATE_COLUMNS)
    for row in EXAMPLE_ROWS:
        sheet.append(row)
    _fit_columns(sheet, len(TEMPLATE_COLUMNS))

    instructions = workbook.create_sheet("Instructions")
    _write_header(instructions, ["Instructions"])
    for line in INSTRUCTIONS:
        instructions.append([line])
    _fit_columns(instructions, 1)

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    return buffer
