"""
grades.py — Weighted grade averages and pass-rate statistics.

Composite score per learner (or per class of one learner):
- Exam mean: 50%
- Quiz mean: 30%
- Homework mean: 20%

A category with no scores has no mean and adds nothing to the composite; the
remaining weights are not redistributed. A learner qualifies when the
composite is at or above the pass threshold (70 by default, inclusive).
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import numpy as np
import pandas as pd

from core.config import PASS_THRESHOLD
from core.errors import InvalidInputError
from core.records import (
    CLASS_ID_MAX,
    CLASS_ID_MIN,
    LEARNER_ID_MAX,
    LEARNER_ID_MIN,
    SCORE_TYPES,
    SCORE_WEIGHTS,
    records_to_frame,
)
from core.store import GradeStore

logger = logging.getLogger(__name__)


# ── Helpers ─────────────────────────────────────────────────────────

def _safe_float(val) -> Optional[float]:
    """Convert to float or return None."""
    try:
        v = float(val)
        return None if np.isnan(v) or np.isinf(v) else round(v, 2)
    except (TypeError, ValueError):
        return None


def _require_int(value: Any, name: str, minimum: int, maximum: Optional[int] = None) -> int:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (int, np.integer)):
        raise InvalidInputError(f"{name} must be an integer, got {value!r}.")
    value = int(value)
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"between {minimum} and {maximum}"
        raise InvalidInputError(f"{name} must be {bounds}, got {value}.")
    return value


# ── Pure Computations ───────────────────────────────────────────────

def weighted_average(means: Mapping[str, Optional[float]]) -> float:
    """Combine per-category means into the weighted composite score."""
    total = 0.0
    for score_type, weight in SCORE_WEIGHTS.items():
        mean = means.get(score_type)
        if mean is None or pd.isna(mean):
            # No scores of this type: the category contributes 0.
            continue
        total += weight * float(mean)
    return total / 100


def compute_weighted_averages(frame: pd.DataFrame, key: str) -> pd.Series:
    """
    Weighted composite per distinct value of `key` ("class_id" or "learner_id").

    The result is indexed by key in order of first appearance in `frame`.
    Entries of unknown type take no part in any category mean.
    """
    if frame.empty:
        return pd.Series(dtype=float)

    groups = pd.unique(frame[key])
    known = frame[frame["type"].isin(SCORE_TYPES)].dropna(subset=["score"])

    if known.empty:
        means = pd.DataFrame(index=groups, columns=list(SCORE_TYPES), dtype=float)
    else:
        means = known.pivot_table(index=key, columns="type", values="score", aggfunc="mean")
        means = means.reindex(index=groups, columns=list(SCORE_TYPES))

    averages = means.apply(lambda row: weighted_average(row.to_dict()), axis=1)
    averages.index.name = key
    return averages.astype(float)


def summarize_pass_rate(
    averages: pd.Series, population: int, pass_threshold: float = PASS_THRESHOLD
) -> Dict[str, Any]:
    """Count qualifying learners and express them against the population."""
    if population <= 0:
        return {"totalLearners": 0, "learners": 0, "percentage": 0.0}

    qualifying = int((averages >= pass_threshold).sum())
    return {
        "totalLearners": int(population),
        "learners": qualifying,
        "percentage": _safe_float(qualifying / population * 100),
    }


# ── Aggregator ──────────────────────────────────────────────────────

class GradeAggregator:
    """Read-side grade computations over an injected record store."""

    def __init__(self, store: GradeStore, pass_threshold: float = PASS_THRESHOLD):
        self.store = store
        self.pass_threshold = pass_threshold

    def class_averages_for_learner(self, learner_id: int) -> List[Dict[str, Any]]:
        """Weighted average for each class the learner has records in."""
        learner_id = _require_int(learner_id, "learner_id", LEARNER_ID_MIN, LEARNER_ID_MAX)

        records = self.store.find({"learner_id": learner_id})
        averages = compute_weighted_averages(records_to_frame(records), "class_id")
        logger.debug("Learner %s: %d class averages", learner_id, len(averages))

        return [
            {"class_id": int(class_id), "avg": _safe_float(avg)}
            for class_id, avg in averages.items()
        ]

    def pass_rate_stats(self, class_id: Optional[int] = None) -> Dict[str, Any]:
        """
        Share of learners whose weighted average reaches the pass threshold.

        Scoped to one class when `class_id` is given. The population is every
        distinct learner in scope, including learners without any scores.
        """
        query = self._scope(class_id)

        records = self.store.find(query)
        population = len(self.store.distinct("learner_id", query))
        averages = compute_weighted_averages(records_to_frame(records), "learner_id")

        return summarize_pass_rate(averages, population, self.pass_threshold)

    def learner_averages(self, class_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Weighted average per learner in scope, flagged against the threshold."""
        query = self._scope(class_id)
        averages = compute_weighted_averages(
            records_to_frame(self.store.find(query)), "learner_id"
        )
        return [
            {
                "learner_id": int(learner_id),
                "avg": _safe_float(avg),
                "qualifying": bool(avg >= self.pass_threshold),
            }
            for learner_id, avg in averages.items()
        ]

    def has_learner(self, learner_id: int) -> bool:
        """True when any record belongs to the learner, with or without scores."""
        learner_id = _require_int(learner_id, "learner_id", LEARNER_ID_MIN, LEARNER_ID_MAX)
        return bool(self.store.distinct("learner_id", {"learner_id": learner_id}))

    def class_pass_rates(self) -> List[Dict[str, Any]]:
        """
        Pass-rate summary for every class present in the store, ordered by class id.

        Reads the store once; each class population counts its learners
        whether or not they have scores.
        """
        records = self.store.find({})
        populations: Dict[int, set] = {}
        for record in records:
            populations.setdefault(int(record["class_id"]), set()).add(record["learner_id"])

        frame = records_to_frame(records)
        rows = []
        for class_id in sorted(populations):
            averages = compute_weighted_averages(frame[frame["class_id"] == class_id], "learner_id")
            summary = summarize_pass_rate(averages, len(populations[class_id]), self.pass_threshold)
            rows.append({"class_id": class_id, **summary})
        return rows

    @staticmethod
    def _scope(class_id: Optional[int]) -> Dict[str, Any]:
        if class_id is None:
            return {}
        return {"class_id": _require_int(class_id, "class_id", CLASS_ID_MIN, CLASS_ID_MAX)}
