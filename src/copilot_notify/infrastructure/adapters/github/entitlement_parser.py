"""Decoding of the Copilot entitlement payload.

Only ``quotas.remaining.premiumInteractionsPercentage`` is load-bearing; the
upstream reports the share of the allowance that is *left*, and this module is
the one place where it is turned into the share that is *used*.
"""
from __future__ import annotations

from typing import Any

from copilot_notify.domain.entities.usage_snapshot import UsageSnapshot


class EntitlementParseError(ValueError):
    pass


def _obj(parent: Any, key: str) -> dict[str, Any]:
    value = parent.get(key) if isinstance(parent, dict) else None
    if not isinstance(value, dict):
        raise EntitlementParseError(f"missing object '{key}'")
    return value


def _opt_int(parent: dict[str, Any], key: str) -> int | None:
    value = parent.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _opt_str(parent: Any, key: str) -> str | None:
    value = parent.get(key) if isinstance(parent, dict) else None
    return value if isinstance(value, str) else None


def parse_entitlement(payload: Any) -> UsageSnapshot:
    """Build a UsageSnapshot from a decoded entitlement body.

    Raises:
        EntitlementParseError: the remaining percentage is absent, not a number,
            or outside 0..100.
    """
    quotas = _obj(payload, "quotas")
    remaining = _obj(quotas, "remaining")
    limits = quotas.get("limits") if isinstance(quotas.get("limits"), dict) else {}

    pct = remaining.get("premiumInteractionsPercentage")
    if isinstance(pct, bool) or not isinstance(pct, (int, float)):
        raise EntitlementParseError("remaining.premiumInteractionsPercentage is not a number")
    remaining_pct = float(pct)
    if not 0.0 <= remaining_pct <= 100.0:
        raise EntitlementParseError(f"remaining percentage out of range: {remaining_pct}")

    return UsageSnapshot(
        used_percentage=100.0 - remaining_pct,
        remaining_interactions=_opt_int(remaining, "premiumInteractions"),
        limit_interactions=_opt_int(limits, "premiumInteractions"),
        reset_date=_opt_str(quotas, "resetDate"),
        plan=_opt_str(payload, "plan"),
    )
