from typing import Protocol

from copilot_notify.domain.outcomes import PollOutcome


class OutcomeRecorderPort(Protocol):
    def record(self, outcome: PollOutcome) -> None: ...
