# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Per-user delegation state and calibration models.

These are the live records the store owns. ``DomainDelegation`` validates
on every assignment, so the ``current_level <= max_level`` invariant holds
after any mutation, not only at construction.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from aico_autonomy.records import AutonomousAction, TrustEvent
from aico_autonomy.types import (
    CalibrationState,
    ComfortPriority,
    DelegationContext,
    DelegationDomain,
    DelegationLevel,
    LearningPhase,
)


def _default_context_levels() -> dict[DelegationContext, dict[DelegationDomain, DelegationLevel]]:
    return {
        DelegationContext.SLEEP: {
            DelegationDomain.LIGHTING: DelegationLevel.AUTO_SILENT,
            DelegationDomain.CLIMATE: DelegationLevel.AUTO_SILENT,
            DelegationDomain.SECURITY: DelegationLevel.AUTO_NOTIFY,
        },
        DelegationContext.AWAY: {
            DelegationDomain.SECURITY: DelegationLevel.AUTO_SILENT,
            DelegationDomain.ENERGY: DelegationLevel.AUTO_SILENT,
            DelegationDomain.CLIMATE: DelegationLevel.AUTO_NOTIFY,
        },
        DelegationContext.BUSY: {
            DelegationDomain.COMMUNICATION: DelegationLevel.INFORM,
            DelegationDomain.SCHEDULING: DelegationLevel.SUGGEST,
        },
    }


class DelegationPreferences(BaseModel, frozen=True):
    """
    User-set rules that sit above the trust-driven hierarchy.

    Attributes:
        context_levels: Per-context level overrides (sleep, away, busy).
            Overrides never lift a domain above its ceiling.
        comfort_priority: How the user trades comfort against efficiency.
        notify_on_auto_actions: Notify after actions the house ran alone.
        notify_on_suggestions: Present one-tap suggestions proactively.
            Confirmation proposals are always presented.
        notification_threshold: Lowest level at which auto actions notify.
        always_ask_for: Action types that always need confirmation.
        never_automate: Action types the house must never run.
    """

    context_levels: dict[DelegationContext, dict[DelegationDomain, DelegationLevel]] = Field(
        default_factory=_default_context_levels
    )
    comfort_priority: ComfortPriority = ComfortPriority.BALANCED
    notify_on_auto_actions: bool = True
    notify_on_suggestions: bool = False
    notification_threshold: DelegationLevel = DelegationLevel.AUTO_REVERSIBLE
    always_ask_for: frozenset[str] = frozenset(
        {"unlock_door", "disarm_security", "large_purchase"}
    )
    never_automate: frozenset[str] = frozenset(
        {"send_message", "post_social", "financial_transaction"}
    )


class DomainDelegation(BaseModel, validate_assignment=True):
    """
    Delegation state for one (user, domain) pair.

    Attributes:
        domain: The domain this entry governs.
        current_level: Level the house currently holds.
        max_level: User-set ceiling; current_level never exceeds it.
        trust_score: Running trust in [0, 100].
        recent_actions: Most recent actions in this domain, oldest first.
        success_rate: Percent of recent actions that succeeded unrejected.
        last_adjusted: UTC time the level last changed (or creation time).
        last_escalated: UTC time of the last policy-driven upgrade.
    """

    domain: DelegationDomain
    current_level: DelegationLevel
    max_level: DelegationLevel
    trust_score: Annotated[float, Field(ge=0.0, le=100.0)]
    recent_actions: list[AutonomousAction] = Field(default_factory=list)
    success_rate: Annotated[float, Field(ge=0.0, le=100.0)] = 0.0
    last_adjusted: datetime
    last_escalated: datetime | None = None

    @model_validator(mode="after")
    def _check_ceiling(self) -> DomainDelegation:
        if self.current_level > self.max_level:
            raise ValueError(
                f"current_level {self.current_level.slug} exceeds "
                f"max_level {self.max_level.slug} for domain '{self.domain.value}'."
            )
        return self


class DelegationProfile(BaseModel, validate_assignment=True):
    """
    Everything the engine knows about one user's delegation.

    ``global_trust_level`` is the unweighted mean of the domain scores and
    is recomputed by the ledger whenever a score changes.
    """

    user_id: str = Field(..., min_length=1)
    domains: dict[DelegationDomain, DomainDelegation]
    global_trust_level: Annotated[float, Field(ge=0.0, le=100.0)]
    preferences: DelegationPreferences = Field(default_factory=DelegationPreferences)
    trust_history: list[TrustEvent] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Calibration
# ---------------------------------------------------------------------------


class ConfidenceThresholds(BaseModel, frozen=True):
    """Minimum confidence the house wants before each kind of behaviour."""

    inform_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.3
    suggest_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.5
    propose_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.7
    auto_act_threshold: Annotated[float, Field(ge=0.0, le=1.0)] = 0.9


class SchedulePattern(BaseModel, frozen=True):
    day_of_week: Annotated[int, Field(ge=0, le=6)]
    time_of_day: str
    typical_actions: list[str] = Field(default_factory=list)
    variance: float = 0.0


class CorrectionRecord(BaseModel, validate_assignment=True):
    """How often the user corrects a given kind of action in a domain."""

    domain: DelegationDomain
    original_action: str
    correction: str
    frequency: int = 1
    last_occurred: datetime


class BehaviorBaseline(BaseModel, validate_assignment=True):
    temperature_min: float = 20.0
    temperature_max: float = 24.0
    lighting_preferences: dict[str, float] = Field(default_factory=dict)
    schedule_patterns: list[SchedulePattern] = Field(default_factory=list)
    correction_history: list[CorrectionRecord] = Field(default_factory=list)


class TrustCalibration(BaseModel, validate_assignment=True):
    user_id: str
    calibration_state: CalibrationState = CalibrationState.INITIAL
    learning_phase: LearningPhase = LearningPhase.OBSERVATION
    confidence_thresholds: ConfidenceThresholds = Field(default_factory=ConfidenceThresholds)
    behavior_baseline: BehaviorBaseline = Field(default_factory=BehaviorBaseline)
