"""Layered, confidence-gated alert classification.

Rules are evaluated top to bottom and the first match wins:

1.  confidence < 80, or a PR status that means "no trustworthy PR"
    → ``internal``, blocked.  Low-trust data is never surfaced, whatever
    the apparent deviation.
2.  confidence ≥ 90 and the plant is offline or produced nothing under
    high irradiance → ``urgent``.
3.  confidence ≥ 90, deviation > 30 % for ≥ 2 consecutive days → ``urgent``.
4.  confidence ≥ 80, 10 % ≤ deviation ≤ 30 % for ≥ 7 consecutive days
    → ``preventive``.
5.  anything else → ``internal``, blocked.

``consecutive_days`` and the offline / zero-generation flags are rolling
history supplied by the caller.  Delivery collaborators must not notify a
customer when ``blocked`` is true.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lib.types import AlertLayer, PrStatus

ADMISSION_CONFIDENCE = 80
URGENT_CONFIDENCE = 90
URGENT_DEVIATION_PERCENT = 30.0
URGENT_MIN_DAYS = 2
PREVENTIVE_MIN_DEVIATION_PERCENT = 10.0
PREVENTIVE_MIN_DAYS = 7

_UNTRUSTED_STATUSES: frozenset[str] = frozenset({"no_data", "config_required", "irradiation_unavailable"})


@dataclass(frozen=True)
class AlertClassification:
    layer: AlertLayer
    reason: str
    blocked: bool


def classify_alert(
    confidence_score: int,
    pr_status: PrStatus,
    deviation_percent: Optional[float],
    consecutive_days: int = 0,
    is_offline: bool = False,
    is_zero_gen_with_high_hsp: bool = False,
) -> AlertClassification:
    deviation = deviation_percent if deviation_percent is not None else 0.0

    if confidence_score < ADMISSION_CONFIDENCE:
        return AlertClassification("internal", f"low_confidence ({confidence_score} < {ADMISSION_CONFIDENCE})", True)
    if pr_status in _UNTRUSTED_STATUSES:
        return AlertClassification("internal", f"pr_status_{pr_status}", True)

    if confidence_score >= URGENT_CONFIDENCE:
        if is_offline:
            return AlertClassification("urgent", "plant_offline", False)
        if is_zero_gen_with_high_hsp:
            return AlertClassification("urgent", "zero_generation_with_high_irradiance", False)
        if deviation > URGENT_DEVIATION_PERCENT and consecutive_days >= URGENT_MIN_DAYS:
            return AlertClassification(
                "urgent",
                f"deviation {deviation:.1f}% for {consecutive_days} consecutive day(s)",
                False,
            )

    if (
        PREVENTIVE_MIN_DEVIATION_PERCENT <= deviation <= URGENT_DEVIATION_PERCENT
        and consecutive_days >= PREVENTIVE_MIN_DAYS
    ):
        return AlertClassification(
            "preventive",
            f"deviation {deviation:.1f}% for {consecutive_days} consecutive day(s)",
            False,
        )

    return AlertClassification("internal", "below_notification_threshold", True)
