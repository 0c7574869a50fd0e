"""Chronological ordering of trend series."""

from __future__ import annotations

from vitalkit_excel.models import MetricsState, Sample


def sort_trend(samples: list[Sample]) -> list[Sample]:
    """Stable ascending sort by timestamp.

    Untimestamped samples stay at their insertion positions; the timestamped
    ones are sorted among themselves into the remaining slots.
    """
    timed_slots = [i for i, s in enumerate(samples) if s.timestamp is not None]
    timed = sorted(
        (samples[i] for i in timed_slots),
        key=lambda s: s.timestamp,  # type: ignore[arg-type, return-value]
    )
    ordered = list(samples)
    for slot, sample in zip(timed_slots, timed):
        ordered[slot] = sample
    return ordered


def finalize_trends(metrics: MetricsState) -> None:
    """Sort every non-empty trend series of *metrics* in place."""
    for key, samples in metrics.trends.items():
        if samples:
            metrics.trends[key] = sort_trend(samples)
