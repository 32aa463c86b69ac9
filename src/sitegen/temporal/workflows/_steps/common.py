"""Shared workflow step utilities."""

from datetime import timedelta

from temporalio.common import RetryPolicy


def short_activity_opts() -> dict[str, object]:
    """Options for quick activities (DB reads, status updates)."""
    return {
        "start_to_close_timeout": timedelta(seconds=30),
        "retry_policy": RetryPolicy(
            maximum_attempts=3,
            initial_interval=timedelta(seconds=1),
        ),
    }


def generation_activity_opts(hours: int = 4) -> dict[str, object]:
    """Options for agent runs.

    A single attempt: agents already retry provider errors with backoff,
    and a crashed run is recorded as FAILED rather than replayed.
    """
    return {
        "start_to_close_timeout": timedelta(hours=hours),
        "heartbeat_timeout": timedelta(minutes=2),
        "retry_policy": RetryPolicy(maximum_attempts=1),
    }
