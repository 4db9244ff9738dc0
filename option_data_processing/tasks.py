import asyncio
from typing import Any, Awaitable, Callable, Dict, Hashable, Mapping

from .models import TaskOutcome
from .utils import get_logger

logger = get_logger("TaskGroup")


async def run_task_group(units: Mapping[Hashable, Callable[[], Awaitable[Any]]]) -> Dict[Hashable, TaskOutcome]:
    """
    Runs every unit concurrently and waits for all of them.

    A failing unit does not cancel its siblings; its exception is stored in its outcome.
    Outcomes keep the order of `units`.
    """
    keys = list(units)
    tasks = [asyncio.ensure_future(units[key]()) for key in keys]
    results = await asyncio.gather(*tasks, return_exceptions=True)

    outcomes = {}
    for key, result in zip(keys, results):
        if isinstance(result, BaseException):
            outcomes[key] = TaskOutcome(key=key, error=result)
        else:
            outcomes[key] = TaskOutcome(key=key, result=result)
    return outcomes


def raise_first_error(outcomes: Mapping[Hashable, TaskOutcome]) -> None:
    """Re-raises the first failure in key order. Any further failures are only logged."""
    failures = [outcome for outcome in outcomes.values() if outcome.failed]
    if not failures:
        return
    for outcome in failures[1:]:
        logger.error(f"Unit {outcome.key} also failed: {outcome.error!r}")
    raise failures[0].error
