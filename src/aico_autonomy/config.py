# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from typing import Annotated

from pydantic import BaseModel, Field, model_validator

from aico_autonomy.types import AutonomyMode

# Learning rate applied on top of the dynamics for each autonomy mode.
# Modes not listed learn at the balanced rate.
MODE_LEARNING_RATES: dict[AutonomyMode, float] = {
    AutonomyMode.CONSERVATIVE: 0.5,
    AutonomyMode.BALANCED: 1.0,
    AutonomyMode.PROACTIVE: 1.5,
    AutonomyMode.GUEST_MODE: 0.0,
}


def learning_rate_for(mode: AutonomyMode) -> float:
    """Return the learning rate for *mode* (1.0 when the mode has no entry)."""
    return MODE_LEARNING_RATES.get(mode, 1.0)


class TrustDynamics(BaseModel, frozen=True):
    """
    Asymmetric trust dynamics: trust grows slowly and decays quickly.

    Attributes:
        growth_rate: Multiplier applied to positive deltas.
        decay_rate: Multiplier applied to negative deltas.
        recovery_period_days: Days a domain is expected to need to recover
            from a major breach. Informational; surfaced to presenters.
        warning_threshold: Below this score a low-trust warning is emitted.
        lockout_threshold: Below this score the domain loses one level.
        rehabilitation_threshold: Floor the hourly decay never goes below.
        promotion_trust_threshold: Score a domain must exceed to gain a level.
        promotion_success_threshold: Success rate (percent) a domain must
            exceed to gain a level.
        escalation_cooldown_seconds: Minimum time between two policy-driven
            upgrades of the same domain. 0 disables the cooldown.
    """

    growth_rate: Annotated[float, Field(ge=0)] = 0.5
    decay_rate: Annotated[float, Field(ge=0)] = 2.0
    recovery_period_days: Annotated[int, Field(ge=0)] = 14
    warning_threshold: Annotated[float, Field(ge=0, le=100)] = 40.0
    lockout_threshold: Annotated[float, Field(ge=0, le=100)] = 20.0
    rehabilitation_threshold: Annotated[float, Field(ge=0, le=100)] = 30.0
    promotion_trust_threshold: Annotated[float, Field(ge=0, le=100)] = 70.0
    promotion_success_threshold: Annotated[float, Field(ge=0, le=100)] = 80.0
    escalation_cooldown_seconds: Annotated[float, Field(ge=0)] = 24 * 60 * 60

    @model_validator(mode="after")
    def _check_threshold_order(self) -> TrustDynamics:
        if self.lockout_threshold > self.warning_threshold:
            raise ValueError(
                "lockout_threshold must not exceed warning_threshold "
                f"({self.lockout_threshold} > {self.warning_threshold})."
            )
        if self.promotion_trust_threshold <= self.lockout_threshold:
            raise ValueError(
                "promotion_trust_threshold must be above lockout_threshold."
            )
        return self


class HistoryLimits(BaseModel, frozen=True):
    """
    Bounds for every in-memory history. Oldest entries are evicted first.

    Attributes:
        domain_actions: Actions retained per domain.
        global_actions: Executed actions retained across all users.
        trust_events: Trust events retained per profile.
        success_window: Most recent domain actions considered when
            computing the success rate.
    """

    domain_actions: Annotated[int, Field(gt=0)] = 100
    global_actions: Annotated[int, Field(gt=0)] = 500
    trust_events: Annotated[int, Field(gt=0)] = 1000
    success_window: Annotated[int, Field(gt=0)] = 50


class AutonomyConfig(BaseModel, frozen=True):
    """
    Top-level configuration for the AutonomyController.

    All fields have defaults; pass only what needs to change.

    Example::

        config = AutonomyConfig(
            dynamics=TrustDynamics(growth_rate=1.0),
            proposal_ttl_seconds=600,
        )
        controller = AutonomyController(config=config)

    Attributes:
        dynamics: Trust growth/decay settings and thresholds.
        history: Bounds for action and event histories.
        initial_trust: Trust score every domain starts with.
        decay_per_tick: Amount subtracted from every domain score per tick.
        decay_interval_seconds: Seconds between decay ticks.
        proposal_ttl_seconds: Lifetime of a proposal whose action carries no
            deadline.
        permission_ttl_seconds: Lifetime of a permission request.
        auto_calibrate: Re-evaluate calibration after every trust change.
        initial_mode: Autonomy mode the controller starts in.
    """

    dynamics: TrustDynamics = Field(default_factory=TrustDynamics)
    history: HistoryLimits = Field(default_factory=HistoryLimits)
    initial_trust: Annotated[float, Field(ge=0, le=100)] = 30.0
    decay_per_tick: Annotated[float, Field(ge=0)] = 0.1
    decay_interval_seconds: Annotated[float, Field(gt=0)] = 60 * 60
    proposal_ttl_seconds: Annotated[float, Field(gt=0)] = 60 * 60
    permission_ttl_seconds: Annotated[float, Field(gt=0)] = 24 * 60 * 60
    auto_calibrate: bool = True
    initial_mode: AutonomyMode = AutonomyMode.BALANCED
