from typing import Protocol

from copilot_notify.domain.outcomes import PollOutcome


class UsageClientPort(Protocol):
    async def fetch_usage(self) -> PollOutcome: ...
