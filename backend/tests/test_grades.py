"""
Tests for core/grades.py — weighting, grouping and pass-rate statistics.
"""

import os
import sys
import pytest
import pandas as pd

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from core.errors import InvalidInputError
from core.grades import (
    GradeAggregator,
    compute_weighted_averages,
    summarize_pass_rate,
    weighted_average,
)
from core.records import records_to_frame
from core.store import GradeStore, InMemoryGradeStore


def _record(class_id, learner_id, exam=(), quiz=(), homework=()):
    scores = (
        [{"type": "exam", "score": s} for s in exam]
        + [{"type": "quiz", "score": s} for s in quiz]
        + [{"type": "homework", "score": s} for s in homework]
    )
    return {"class_id": class_id, "learner_id": learner_id, "scores": scores}


class RawStore(GradeStore):
    """Serves records exactly as given, skipping write validation."""

    name = "raw"

    def __init__(self, records):
        self.records = records

    def find(self, query=None):
        query = query or {}
        return [r for r in self.records if all(r.get(k) == v for k, v in query.items())]

    def distinct(self, field, query=None):
        values = []
        for r in self.find(query):
            if r[field] not in values:
                values.append(r[field])
        return values

    def insert_many(self, records):
        self.records.extend(records)
        return len(records)


@pytest.fixture
def store():
    return InMemoryGradeStore([
        _record(2, 2, exam=[80], quiz=[70], homework=[90, 100]),
        _record(1, 2, exam=[50], quiz=[60], homework=[70]),
        _record(2, 3, exam=[70], quiz=[70], homework=[70]),
        _record(2, 4, exam=[40], quiz=[50], homework=[60]),
        _record(3, 5, exam=[95], quiz=[90], homework=[85]),
    ])


class TestWeightedAverage:
    """Tests for the composite formula."""

    def test_all_categories(self):
        assert weighted_average({"exam": 80, "quiz": 70, "homework": 95}) == pytest.approx(80.0)

    def test_missing_category_contributes_zero(self):
        assert weighted_average({"exam": 80, "quiz": 70}) == pytest.approx(61.0)

    def test_none_and_nan_are_missing(self):
        assert weighted_average({"exam": None, "quiz": float("nan"), "homework": 50}) == pytest.approx(10.0)

    def test_no_categories(self):
        assert weighted_average({}) == 0.0

    def test_exact_boundary_value(self):
        assert weighted_average({"exam": 70, "quiz": 70, "homework": 70}) == 70.0


class TestComputeWeightedAverages:
    """Tests for grouping a flattened frame."""

    def test_homework_mean_then_weighting(self):
        frame = records_to_frame([_record(2, 2, exam=[80], quiz=[70], homework=[90, 100])])
        averages = compute_weighted_averages(frame, "class_id")
        assert list(averages.index) == [2]
        assert averages[2] == pytest.approx(80.0)

    def test_unknown_type_is_excluded_not_zero(self):
        records = [{
            "class_id": 1, "learner_id": 1,
            "scores": [
                {"type": "exam", "score": 100},
                {"type": "exam", "score": 80},
                {"type": "project", "score": 0},
            ],
        }]
        averages = compute_weighted_averages(records_to_frame(records), "learner_id")
        assert averages[1] == pytest.approx(45.0)

    def test_only_unknown_types_gives_zero(self):
        records = [{"class_id": 1, "learner_id": 1, "scores": [{"type": "project", "score": 90}]}]
        averages = compute_weighted_averages(records_to_frame(records), "learner_id")
        assert averages[1] == 0.0

    def test_empty_frame(self):
        averages = compute_weighted_averages(records_to_frame([]), "learner_id")
        assert averages.empty

    def test_first_appearance_order(self):
        frame = records_to_frame([
            _record(9, 1, exam=[50]),
            _record(3, 1, exam=[60]),
            _record(9, 1, quiz=[60]),
        ])
        averages = compute_weighted_averages(frame, "class_id")
        assert list(averages.index) == [9, 3]

    def test_entries_across_records_are_pooled(self):
        frame = records_to_frame([
            _record(1, 7, exam=[60]),
            _record(2, 7, exam=[100]),
        ])
        averages = compute_weighted_averages(frame, "learner_id")
        assert averages[7] == pytest.approx(40.0)


class TestSummarizePassRate:
    """Tests for the ratio against the population."""

    def test_empty_population_sentinel(self):
        result = summarize_pass_rate(pd.Series(dtype=float), 0)
        assert result == {"totalLearners": 0, "learners": 0, "percentage": 0.0}

    def test_no_qualifying(self):
        result = summarize_pass_rate(pd.Series([10.0, 69.99]), 2)
        assert result["learners"] == 0
        assert result["percentage"] == 0.0

    def test_threshold_is_inclusive(self):
        result = summarize_pass_rate(pd.Series([70.0, 69.0]), 2)
        assert result["learners"] == 1
        assert result["percentage"] == 50.0

    def test_percentage_is_rounded(self):
        result = summarize_pass_rate(pd.Series([90.0, 10.0, 10.0]), 3)
        assert result["percentage"] == 33.33


class TestClassAveragesForLearner:
    """Tests for GradeAggregator.class_averages_for_learner."""

    def test_sample_learner(self, store):
        result = GradeAggregator(store).class_averages_for_learner(2)
        by_class = {r["class_id"]: r["avg"] for r in result}
        assert by_class == {2: 80.0, 1: 57.0}

    def test_unknown_learner_is_empty(self, store):
        assert GradeAggregator(store).class_averages_for_learner(999) == []

    def test_repeated_calls_are_stable(self, store):
        aggregator = GradeAggregator(store)
        assert aggregator.class_averages_for_learner(2) == aggregator.class_averages_for_learner(2)

    @pytest.mark.parametrize("bad_id", [-1, "2", 2.5, True, None])
    def test_rejects_invalid_ids(self, store, bad_id):
        with pytest.raises(InvalidInputError):
            GradeAggregator(store).class_averages_for_learner(bad_id)

    def test_id_beyond_int64_is_rejected(self, store):
        with pytest.raises(InvalidInputError):
            GradeAggregator(store).class_averages_for_learner(2**70)

    def test_largest_int64_id_is_accepted(self, store):
        assert GradeAggregator(store).class_averages_for_learner(2**63 - 1) == []

    def test_has_learner_counts_records_without_scores(self):
        store = InMemoryGradeStore([{"class_id": 3, "learner_id": 5, "scores": []}])
        aggregator = GradeAggregator(store)
        assert aggregator.class_averages_for_learner(5) == []
        assert aggregator.has_learner(5) is True
        assert aggregator.has_learner(6) is False


class TestPassRateStats:
    """Tests for GradeAggregator.pass_rate_stats."""

    def test_whole_population(self, store):
        # learner 2 pools both classes: exam 65, quiz 65, homework 86.67 -> 69.33
        result = GradeAggregator(store).pass_rate_stats()
        assert result == {"totalLearners": 4, "learners": 2, "percentage": 50.0}

    def test_class_scope_counts_learners_in_class(self, store):
        result = GradeAggregator(store).pass_rate_stats(2)
        assert result["totalLearners"] == 3
        assert result["learners"] == 2
        assert result["percentage"] == pytest.approx(66.67)

    def test_exactly_seventy_qualifies(self):
        store = InMemoryGradeStore([_record(5, 1, exam=[70], quiz=[70], homework=[70])])
        result = GradeAggregator(store).pass_rate_stats(5)
        assert result == {"totalLearners": 1, "learners": 1, "percentage": 100.0}

    def test_empty_class(self, store):
        result = GradeAggregator(store).pass_rate_stats(250)
        assert result == {"totalLearners": 0, "learners": 0, "percentage": 0.0}

    def test_learner_without_scores_counts_in_population(self):
        store = InMemoryGradeStore([
            _record(1, 1, exam=[100], quiz=[100], homework=[100]),
            {"class_id": 1, "learner_id": 2, "scores": []},
        ])
        result = GradeAggregator(store).pass_rate_stats(1)
        assert result == {"totalLearners": 2, "learners": 1, "percentage": 50.0}

    def test_custom_threshold(self, store):
        result = GradeAggregator(store, pass_threshold=90).pass_rate_stats()
        assert result["learners"] == 1

    @pytest.mark.parametrize("bad_id", [-1, 301, "abc"])
    def test_rejects_invalid_class_ids(self, store, bad_id):
        with pytest.raises(InvalidInputError):
            GradeAggregator(store).pass_rate_stats(bad_id)

    def test_unknown_types_from_store_are_ignored(self):
        store = RawStore([
            {"class_id": 1, "learner_id": 1, "scores": [
                {"type": "exam", "score": 100},
                {"type": "quiz", "score": 100},
                {"type": "homework", "score": 100},
                {"type": "bonus", "score": 0},
            ]},
        ])
        result = GradeAggregator(store).pass_rate_stats()
        assert result["learners"] == 1


class TestReportHelpers:
    """Tests for learner_averages and class_pass_rates."""

    def test_learner_averages_flag_qualifying(self, store):
        rows = {r["learner_id"]: r for r in GradeAggregator(store).learner_averages(2)}
        assert rows[3]["avg"] == 70.0
        assert rows[3]["qualifying"] is True
        assert rows[4]["qualifying"] is False

    def test_class_pass_rates_sorted_by_class(self, store):
        rows = GradeAggregator(store).class_pass_rates()
        assert [r["class_id"] for r in rows] == [1, 2, 3]
        assert rows[0] == {"class_id": 1, "totalLearners": 1, "learners": 0, "percentage": 0.0}

    def test_class_pass_rates_match_per_class_stats(self, store):
        aggregator = GradeAggregator(store)
        for row in aggregator.class_pass_rates():
            expected = aggregator.pass_rate_stats(row["class_id"])
            assert {k: v for k, v in row.items() if k != "class_id"} == expected

    def test_class_pass_rates_read_the_store_once(self):
        store = RawStore([
            _record(1, 1, exam=[100], quiz=[100], homework=[100]),
            {"class_id": 1, "learner_id": 2, "scores": []},
            _record(2, 3, exam=[10]),
        ])
        calls = []
        original_find = store.find

        def counting_find(query=None):
            calls.append(query)
            return original_find(query)

        store.find = counting_find
        rows = GradeAggregator(store).class_pass_rates()

        assert calls == [{}]
        assert rows == [
            {"class_id": 1, "totalLearners": 2, "learners": 1, "percentage": 50.0},
            {"class_id": 2, "totalLearners": 1, "learners": 0, "percentage": 0.0},
        ]
