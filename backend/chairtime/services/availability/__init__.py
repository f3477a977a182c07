"""Availability aggregation: pull, cache, dedupe and summarize booking-provider slots."""
from chairtime.services.availability.orchestrator import pull_availability
from chairtime.services.availability.types import AvailabilityPullResult, PullOptions
from chairtime.services.availability.window import resolve_week_range

__all__ = ["AvailabilityPullResult", "PullOptions", "pull_availability", "resolve_week_range"]
