# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Pure trust arithmetic.

Nothing here touches state: every function maps inputs to a number. The
ledger composes them when recording events and when applying decay.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from aico_autonomy.config import TrustDynamics
from aico_autonomy.records import AutonomousAction
from aico_autonomy.types import TrustOutcome

TRUST_SCORE_MIN = 0.0
TRUST_SCORE_MAX = 100.0

# Confidence above which a mistake costs extra trust.
HIGH_CONFIDENCE = 0.8
HIGH_CONFIDENCE_PENALTY = 1.5

# Base delta per outcome before dynamics and learning rate.
# Outcomes missing from the table contribute nothing.
BASE_TRUST_DELTAS: dict[TrustOutcome, float] = {
    TrustOutcome.CORRECT_PREDICTION: 2.0,
    TrustOutcome.APPRECIATED_ACTION: 3.0,
    TrustOutcome.NEUTRAL: 0.5,
    TrustOutcome.MINOR_CORRECTION: -2.0,
    TrustOutcome.SIGNIFICANT_CORRECTION: -5.0,
    TrustOutcome.REJECTED: -8.0,
    TrustOutcome.COMPLAINED: -15.0,
}


def base_delta(outcome: TrustOutcome) -> float:
    """Return the table delta for *outcome* (0.0 for unlisted outcomes)."""
    return BASE_TRUST_DELTAS.get(outcome, 0.0)


def calculate_trust_delta(
    outcome: TrustOutcome,
    confidence: float,
    dynamics: TrustDynamics,
    learning_rate: float,
) -> float:
    """
    Compute the signed trust change for one observed outcome.

    Steps, in order:

    1. Look up the base delta for *outcome*.
    2. If the delta is negative and *confidence* exceeds 0.8, multiply by
       1.5. Confident mistakes cost more.
    3. Multiply by ``dynamics.growth_rate`` for gains or
       ``dynamics.decay_rate`` for losses.
    4. Multiply by *learning_rate* (0 in guest mode).

    Args:
        outcome: The observed outcome.
        confidence: The action's confidence in [0, 1].
        dynamics: Growth/decay multipliers.
        learning_rate: Mode-dependent learning rate.

    Returns:
        The delta to add to the domain score, before clamping.
    """
    delta = base_delta(outcome)

    if delta < 0 and confidence > HIGH_CONFIDENCE:
        delta *= HIGH_CONFIDENCE_PENALTY

    if delta > 0:
        delta *= dynamics.growth_rate
    else:
        delta *= dynamics.decay_rate

    delta *= learning_rate
    # Normalise -0.0 so a zero learning rate reports a plain zero.
    return delta if delta != 0 else 0.0


def clamp_score(score: float) -> float:
    """Clamp *score* to the valid trust range [0, 100]."""
    return max(TRUST_SCORE_MIN, min(TRUST_SCORE_MAX, score))


def decayed_score(score: float, amount: float, floor: float) -> float:
    """
    Return *score* after one decay tick of *amount*, never below *floor*.

    A score already under the floor is lifted to the floor: the floor is
    the rehabilitation level a domain returns to once it stops losing trust.
    """
    return clamp_score(max(floor, score - amount))


def compute_success_rate(actions: Sequence[AutonomousAction], window: int) -> float:
    """
    Percent of the last *window* actions that succeeded and were not rejected.

    Actions without a recorded outcome count as unsuccessful. An empty
    history yields 0.0.
    """
    recent = list(actions)[-window:]
    if not recent:
        return 0.0
    successful = sum(
        1
        for action in recent
        if action.outcome is not None
        and action.outcome.success
        and action.outcome.user_reaction is not TrustOutcome.REJECTED
    )
    return successful / len(recent) * 100.0


def mean_trust(scores: Iterable[float]) -> float:
    """Unweighted arithmetic mean of *scores* (0.0 when empty)."""
    values = list(scores)
    if not values:
        return 0.0
    return sum(values) / len(values)
