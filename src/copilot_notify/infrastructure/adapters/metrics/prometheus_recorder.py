from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge

from copilot_notify.application.ports.outcome_recorder_port import OutcomeRecorderPort
from copilot_notify.domain.outcomes import OutcomeKind, PollOutcome


class PrometheusOutcomeRecorder(OutcomeRecorderPort):
    def __init__(self, registry: CollectorRegistry) -> None:
        self.outcomes = Counter(
            "copilot_notify_poll_outcomes",
            "Usage poll outcomes by kind",
            ["kind", "network_error"],
            registry=registry,
        )
        self.used_percentage = Gauge(
            "copilot_notify_used_percentage",
            "Premium request allowance used, last successful poll",
            registry=registry,
        )

    def record(self, outcome: PollOutcome) -> None:
        self.outcomes.labels(
            kind=outcome.kind.value,
            network_error=outcome.network_error.value if outcome.network_error else "",
        ).inc()
        if outcome.kind is OutcomeKind.SUCCESS and outcome.snapshot is not None:
            self.used_percentage.set(outcome.snapshot.used_percentage)
