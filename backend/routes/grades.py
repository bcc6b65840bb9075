"""
Grade routes — weighted averages and pass-rate statistics.
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from core.grades import GradeAggregator

router = APIRouter()


def get_aggregator(request: Request) -> GradeAggregator:
    """Build an aggregator over the store attached to the running app."""
    state = request.app.state
    return GradeAggregator(state.store, pass_threshold=state.pass_threshold)


@router.get("/learner/{learner_id}/avg-class")
async def learner_class_averages(
    learner_id: int, aggregator: GradeAggregator = Depends(get_aggregator)
):
    """Weighted average per class for one learner."""
    result = await run_in_threadpool(aggregator.class_averages_for_learner, learner_id)
    if not result and not await run_in_threadpool(aggregator.has_learner, learner_id):
        raise HTTPException(404, f"Learner '{learner_id}' not found.")
    return result


@router.get("/stats")
async def pass_rate_stats(aggregator: GradeAggregator = Depends(get_aggregator)):
    """Share of all learners whose weighted average reaches the pass threshold."""
    return await run_in_threadpool(aggregator.pass_rate_stats)


@router.get("/stats/{class_id}")
async def class_pass_rate_stats(
    class_id: int, aggregator: GradeAggregator = Depends(get_aggregator)
):
    """Pass-rate statistics scoped to the learners of one class."""
    return await run_in_threadpool(aggregator.pass_rate_stats, class_id)
