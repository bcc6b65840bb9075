"""
records.py — Score record schema and flattening.

A score record belongs to one learner in one class and carries an ordered list
of typed scores:

    {"class_id": 2, "learner_id": 2,
     "scores": [{"type": "exam", "score": 80}, {"type": "quiz", "score": 70}]}

Records are validated here before they are written to any store. For analysis
they are flattened into a long DataFrame with one row per score entry.
"""

from typing import Any, Dict, Iterable, List, Literal

import pandas as pd
from pydantic import BaseModel, Field, ValidationError

from core.errors import RecordValidationError

# Category weights as whole percentages of the composite score.
SCORE_WEIGHTS: Dict[str, int] = {
    "exam": 50,
    "quiz": 30,
    "homework": 20,
}
SCORE_TYPES = tuple(SCORE_WEIGHTS)

CLASS_ID_MIN = 0
CLASS_ID_MAX = 300
LEARNER_ID_MIN = 0
# BSON stores integers as at most 64-bit signed values.
LEARNER_ID_MAX = 2**63 - 1

FRAME_COLUMNS = ["class_id", "learner_id", "type", "score"]


class ScoreEntry(BaseModel):
    type: Literal["exam", "quiz", "homework"]
    score: float = Field(ge=0, le=100, strict=True)


class ScoreRecord(BaseModel):
    class_id: int = Field(ge=CLASS_ID_MIN, le=CLASS_ID_MAX, strict=True)
    learner_id: int = Field(ge=LEARNER_ID_MIN, le=LEARNER_ID_MAX, strict=True)
    scores: List[ScoreEntry] = Field(default_factory=list)


def validate_record(record: Dict[str, Any]) -> Dict[str, Any]:
    """Validate one raw record and return its normalized dict form."""
    try:
        return ScoreRecord.model_validate(record).model_dump()
    except ValidationError as exc:
        raise RecordValidationError(f"Invalid score record: {exc.errors()}") from exc


def validate_records(records: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Validate a batch; nothing is returned unless every record passes."""
    return [validate_record(r) for r in records]


def records_to_frame(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """
    Flatten score records into one row per score entry.

    Records without entries produce no rows. Entry types are kept as stored,
    so unknown types reach the aggregation step, which ignores them.
    """
    rows = []
    for record in records:
        for entry in record.get("scores") or []:
            rows.append({
                "class_id": record.get("class_id"),
                "learner_id": record.get("learner_id"),
                "type": entry.get("type"),
                "score": entry.get("score"),
            })

    frame = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    frame["score"] = pd.to_numeric(frame["score"], errors="coerce")
    return frame
