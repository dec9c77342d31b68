"""
Iteration planning: how many page calls a retrieval needs and roughly how long
they will take.

Estimates are best-effort figures computed from latency observed under
current network conditions, never a guarantee.
"""

import math
from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class RetrievalPlan:
    """Derived, per-request plan. Never persisted."""

    total_records: int
    page_size: int
    page_count: int
    estimated_duration: timedelta
    requires_confirmation: bool
    sampled_latency: timedelta = timedelta(0)

    @property
    def is_empty(self) -> bool:
        return self.page_count == 0


def page_count_for(total_records: int, page_size: int) -> int:
    """ceil(total_records / page_size), validated."""
    if total_records < 0:
        raise ValueError(f"total_records must be >= 0, got {total_records}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return math.ceil(total_records / page_size)


def plan(
    total_records: int,
    page_size: int,
    sampled_latency: timedelta,
    ask_before_call: bool = True,
) -> RetrievalPlan:
    """
    Build a RetrievalPlan.

    Args:
        total_records: Records to retrieve (already capped by top_n)
        page_size: Rows per page call
        sampled_latency: Observed latency of one real request to the dataset
        ask_before_call: Whether the caller opted into confirmation

    Returns:
        RetrievalPlan with page count, estimate and confirmation flag
    """
    pages = page_count_for(total_records, page_size)
    return RetrievalPlan(
        total_records=total_records,
        page_size=page_size,
        page_count=pages,
        estimated_duration=sampled_latency * pages,
        requires_confirmation=pages > 1 and ask_before_call,
        sampled_latency=sampled_latency,
    )


def reestimate(plan: RetrievalPlan, observed_latency: timedelta, pages_done: int) -> timedelta:
    """Remaining duration once real page latency is known."""
    remaining = max(plan.page_count - pages_done, 0)
    return observed_latency * remaining


def format_duration(duration: timedelta) -> str:
    seconds = duration.total_seconds()
    if seconds < 60:
        return f"{seconds:.1f} seconds"
    if seconds < 3600:
        return f"{seconds / 60:.1f} minutes"
    return f"{seconds / 3600:.1f} hours"


def describe(plan: RetrievalPlan) -> str:
    """Advisory message presented before a multi-page retrieval."""
    return (
        f"{plan.total_records} matching records require {plan.page_count} API calls "
        f"of up to {plan.page_size} rows. Estimated time: "
        f"{format_duration(plan.estimated_duration)} "
        f"(best-effort, based on current network conditions)."
    )
