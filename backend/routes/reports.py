"""
Report routes — Excel export of grade averages.
"""

import uuid
from pathlib import Path

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from starlette.background import BackgroundTask
from starlette.concurrency import run_in_threadpool

from core.grades import GradeAggregator
from core.report_builder import generate_grades_workbook
from routes.grades import get_aggregator

router = APIRouter()

REPORTS_DIR = Path(__file__).resolve().parent.parent / "reports"


def _safe_unlink(path: str):
    """Remove a generated report once the response is sent."""
    Path(path).unlink(missing_ok=True)


def _build_workbook(aggregator: GradeAggregator, output_path: str):
    generate_grades_workbook(
        output_path=output_path,
        learner_rows=aggregator.learner_averages(),
        class_rows=aggregator.class_pass_rates(),
    )


@router.get("/excel")
async def excel_export(aggregator: GradeAggregator = Depends(get_aggregator)):
    """Learner averages and per-class pass rates as an Excel workbook."""
    REPORTS_DIR.mkdir(parents=True, exist_ok=True)
    report_id = str(uuid.uuid4())[:8]
    output_path = REPORTS_DIR / f"grades_export_{report_id}.xlsx"

    await run_in_threadpool(_build_workbook, aggregator, str(output_path))

    return FileResponse(
        str(output_path),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        filename=f"Grades_Export_{report_id}.xlsx",
        background=BackgroundTask(_safe_unlink, str(output_path)),
    )
