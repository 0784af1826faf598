# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Gradual escalation and de-escalation policy.

Evaluation is a pure function of a domain's state, the dynamics and the
current time. A single evaluation moves a domain at most one rung, no
matter how far past a threshold its score is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from aico_autonomy.config import TrustDynamics
from aico_autonomy.levels import step_down, step_up
from aico_autonomy.profiles.models import DomainDelegation
from aico_autonomy.types import DelegationLevel

EscalationDirection = Literal["upgrade", "downgrade"]


@dataclass(frozen=True)
class EscalationResult:
    """Outcome of evaluating one domain after a trust change."""

    new_level: DelegationLevel
    """Level the domain should hold after this evaluation."""

    direction: EscalationDirection | None
    """``'upgrade'``, ``'downgrade'`` or None when the level is unchanged."""

    trust_low: bool
    """True when the score sits below the warning threshold."""


def _cooldown_elapsed(
    delegation: DomainDelegation,
    dynamics: TrustDynamics,
    now: datetime,
) -> bool:
    if delegation.last_escalated is None:
        return True
    elapsed = (now - delegation.last_escalated).total_seconds()
    return elapsed >= dynamics.escalation_cooldown_seconds


def evaluate_delegation_level(
    delegation: DomainDelegation,
    dynamics: TrustDynamics,
    now: datetime,
) -> EscalationResult:
    """
    Decide whether a domain gains or loses one delegation level.

    - Upgrade one rung when the score exceeds the promotion threshold, the
      success rate exceeds the promotion success threshold, the domain is
      below its ceiling, and the escalation cooldown has elapsed since the
      last policy-driven upgrade.
    - Downgrade one rung when the score is below the lockout threshold and
      the domain is above INFORM.
    - Independently flag low trust whenever the score is below the warning
      threshold, whether or not a downgrade happens.

    Args:
        delegation: The domain state after the trust change was applied.
        dynamics: Thresholds to evaluate against.
        now: Current UTC time, used for the cooldown.

    Returns:
        An :class:`EscalationResult`. The caller applies it.
    """
    current = delegation.current_level
    score = delegation.trust_score
    trust_low = score < dynamics.warning_threshold

    if (
        score > dynamics.promotion_trust_threshold
        and delegation.success_rate > dynamics.promotion_success_threshold
        and current < delegation.max_level
        and _cooldown_elapsed(delegation, dynamics, now)
    ):
        return EscalationResult(
            new_level=step_up(current, delegation.max_level),
            direction="upgrade",
            trust_low=trust_low,
        )

    if score < dynamics.lockout_threshold and current > DelegationLevel.INFORM:
        return EscalationResult(
            new_level=step_down(current),
            direction="downgrade",
            trust_low=trust_low,
        )

    return EscalationResult(new_level=current, direction=None, trust_low=trust_low)
