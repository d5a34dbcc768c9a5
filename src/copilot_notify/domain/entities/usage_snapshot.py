from dataclasses import dataclass


@dataclass(frozen=True)
class UsageSnapshot:
    used_percentage: float
    remaining_interactions: int | None = None
    limit_interactions: int | None = None
    reset_date: str | None = None
    plan: str | None = None
