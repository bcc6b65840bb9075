"""
seed.py — Initial grade data loaded at startup.
"""

import logging
from typing import Any, Dict, List

from core.errors import RecordValidationError
from core.store import GradeStore

logger = logging.getLogger(__name__)

SAMPLE_RECORDS: List[Dict[str, Any]] = [
    {
        "class_id": 2,
        "learner_id": 2,
        "scores": [
            {"type": "exam", "score": 80},
            {"type": "quiz", "score": 70},
            {"type": "homework", "score": 90},
            {"type": "homework", "score": 100},
        ],
    },
]


def seed_store(store: GradeStore, records: List[Dict[str, Any]] = SAMPLE_RECORDS) -> int:
    """
    Insert sample records whose (class_id, learner_id) pair is not stored yet.

    Rejected records are logged and skipped so a bad seed never blocks startup.
    Returns the number of records written.
    """
    pending = [
        r for r in records
        if not store.find({"class_id": r.get("class_id"), "learner_id": r.get("learner_id")})
    ]
    if not pending:
        logger.info("Seed data already present, nothing inserted.")
        return 0

    try:
        inserted = store.insert_many(pending)
    except RecordValidationError as exc:
        logger.error("Seed insert failed due to schema validation: %s", exc)
        return 0

    logger.info("Seeded %d grade records.", inserted)
    return inserted
