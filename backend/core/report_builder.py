"""
report_builder.py — Excel export of weighted averages and class pass rates.

Sheets:
- Learner Averages: one row per learner, qualifying rows highlighted
- Class Pass Rates: per-class population, qualifying count and percentage
"""

from typing import Any, Dict, List, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

LEARNER_COLUMNS = ["learner_id", "avg", "qualifying"]
CLASS_COLUMNS = ["class_id", "totalLearners", "learners", "percentage"]

HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
HEADER_FILL = PatternFill(start_color="1a1a2e", end_color="1a1a2e", fill_type="solid")
GREEN_FILL = PatternFill(start_color="d5f5e3", end_color="d5f5e3", fill_type="solid")
RED_FILL = PatternFill(start_color="fadbd8", end_color="fadbd8", fill_type="solid")
THIN_BORDER = Border(
    left=Side(style="thin"), right=Side(style="thin"),
    top=Side(style="thin"), bottom=Side(style="thin"),
)


def _style_sheet(ws, highlight_col: Optional[str] = None, columns: List[str] = ()):
    """Header styling, borders, optional pass/fail fill, frozen header, widths."""
    for cell in ws[1]:
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
        cell.border = THIN_BORDER

    flag_idx = columns.index(highlight_col) if highlight_col in columns else None

    for row in ws.iter_rows(min_row=2, max_row=ws.max_row):
        for cell in row:
            cell.border = THIN_BORDER
            cell.alignment = Alignment(horizontal="center")
        if flag_idx is not None:
            fill = GREEN_FILL if row[flag_idx].value else RED_FILL
            for cell in row:
                cell.fill = fill

    ws.freeze_panes = "A2"

    for col_cells in ws.columns:
        max_len = max(len(str(cell.value or "")) for cell in col_cells)
        ws.column_dimensions[col_cells[0].column_letter].width = min(max_len + 4, 30)


def generate_grades_workbook(
    output_path: str,
    learner_rows: List[Dict[str, Any]],
    class_rows: List[Dict[str, Any]],
):
    """Write the averages workbook to `output_path`."""
    wb = Workbook()

    ws_learners = wb.active
    ws_learners.title = "Learner Averages"
    ws_learners.sheet_properties.tabColor = "1a1a2e"
    ws_learners.append(LEARNER_COLUMNS)
    for r in learner_rows:
        ws_learners.append([r.get(c) for c in LEARNER_COLUMNS])
    _style_sheet(ws_learners, highlight_col="qualifying", columns=LEARNER_COLUMNS)

    ws_classes = wb.create_sheet("Class Pass Rates")
    ws_classes.sheet_properties.tabColor = "0f3460"
    ws_classes.append(CLASS_COLUMNS)
    for r in class_rows:
        ws_classes.append([r.get(c) for c in CLASS_COLUMNS])
    _style_sheet(ws_classes, columns=CLASS_COLUMNS)

    wb.save(output_path)
