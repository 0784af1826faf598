# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging

from aico_autonomy.events import (
    DelegationDowngraded,
    DelegationUpgraded,
    EventBus,
    TrustChanged,
    TrustLowWarning,
)
from aico_autonomy.ledger.dynamics import (
    calculate_trust_delta,
    clamp_score,
    compute_success_rate,
    decayed_score,
    mean_trust,
)
from aico_autonomy.ledger.escalation import evaluate_delegation_level
from aico_autonomy.profiles.models import DelegationProfile, DomainDelegation
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import ActionOutcome, AutonomousAction, TrustEvent, UserFeedback
from aico_autonomy.types import TrustOutcome

logger = logging.getLogger("aico.autonomy.ledger")


class TrustLedger:
    """
    Append-only trust history plus the per-domain scores derived from it.

    Every trust-affecting observation goes through :meth:`record_trust_event`,
    which updates the domain score, success rate and global trust, appends
    a :class:`~aico_autonomy.records.TrustEvent`, and then runs the
    escalation policy for the domain. User disagreement is data here, never
    an exception.

    Example::

        ledger = TrustLedger(store, bus)
        event = ledger.record_trust_event(
            "alice", action, TrustOutcome.APPRECIATED_ACTION
        )
        print(event.trust_delta, event.score_after)
    """

    def __init__(self, store: AutonomyStore, bus: EventBus) -> None:
        self._store = store
        self._bus = bus

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def record_trust_event(
        self,
        user_id: str,
        action: AutonomousAction,
        outcome: TrustOutcome,
        feedback: UserFeedback | None = None,
    ) -> TrustEvent:
        """
        Record an observed outcome for *action* and update trust.

        The action is stamped with an :class:`ActionOutcome` and kept in the
        domain history so it counts towards the success rate. If the
        action is already in that history (it was executed through the
        engine) the stored copy is stamped instead of *action*.

        Args:
            user_id: The profile the outcome applies to.
            action: The action the outcome refers to.
            outcome: The observed outcome kind.
            feedback: Optional feedback that came with the outcome.

        Returns:
            The recorded :class:`TrustEvent`.

        Raises:
            UnknownUserError: If the user has no profile.
            UnknownDomainError: If the profile lacks the action's domain.
        """
        store = self._store
        with store.lock:
            profile = store.profile(user_id)
            delegation = store.domain(user_id, action.domain)
            now = store.clock.now()

            delta = calculate_trust_delta(
                outcome=outcome,
                confidence=action.confidence,
                dynamics=store.config.dynamics,
                learning_rate=store.learning_rate,
            )

            live = self._live_action(delegation, action)
            live.outcome = ActionOutcome(
                success=outcome.is_success,
                actual_result=live.outcome.actual_result if live.outcome else "",
                user_reaction=outcome,
                timestamp=now,
            )
            store.track_domain_action(delegation, live)

            previous = delegation.trust_score
            delegation.trust_score = clamp_score(previous + delta)
            delegation.success_rate = compute_success_rate(
                delegation.recent_actions, store.config.history.success_window
            )
            refresh_global_trust(profile)

            event = TrustEvent(
                timestamp=now,
                user_id=user_id,
                domain=action.domain,
                action_id=action.id,
                action_type=action.type,
                outcome=outcome,
                trust_delta=delta,
                score_after=delegation.trust_score,
                user_feedback=feedback,
            )
            profile.trust_history.append(event)
            excess = len(profile.trust_history) - store.config.history.trust_events
            if excess > 0:
                del profile.trust_history[:excess]

            logger.debug(
                "Trust event recorded",
                extra={
                    "user_id": user_id,
                    "domain": action.domain.value,
                    "outcome": outcome.value,
                    "trust_delta": delta,
                    "trust_score": delegation.trust_score,
                },
            )
            self._bus.emit(
                TrustChanged(
                    user_id=user_id,
                    domain=action.domain,
                    score=delegation.trust_score,
                    delta=delta,
                    outcome=outcome,
                )
            )
            self._apply_escalation(user_id, delegation)
            return event

    def apply_decay(self, amount: float | None = None) -> list[str]:
        """
        Erode every domain score by one decay tick.

        Each score becomes ``max(rehabilitation_threshold, score - amount)``
        and global trust is recomputed. Escalation is not re-evaluated:
        the decay floor sits above the lockout threshold.

        Args:
            amount: Decay per tick. Defaults to ``config.decay_per_tick``.

        Returns:
            IDs of users whose scores changed.
        """
        store = self._store
        tick = store.config.decay_per_tick if amount is None else amount
        floor = store.config.dynamics.rehabilitation_threshold
        changed: list[str] = []

        with store.lock:
            for profile in store.profiles():
                touched = False
                for delegation in profile.domains.values():
                    new_score = decayed_score(delegation.trust_score, tick, floor)
                    if new_score != delegation.trust_score:
                        delegation.trust_score = new_score
                        touched = True
                if touched:
                    refresh_global_trust(profile)
                    changed.append(profile.user_id)

        logger.debug("Decay tick applied", extra={"users_changed": len(changed), "amount": tick})
        return changed

    def history(self, user_id: str, limit: int | None = None) -> list[TrustEvent]:
        """
        Return the user's trust events, oldest first.

        Args:
            user_id: The profile to read.
            limit: When given, only the most recent *limit* events.
        """
        with self._store.lock:
            events = list(self._store.profile(user_id).trust_history)
        if limit is not None:
            if limit < 1:
                raise ValueError(f"limit must be >= 1; got {limit}.")
            events = events[-limit:]
        return events

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _live_action(delegation: DomainDelegation, action: AutonomousAction) -> AutonomousAction:
        """Return the stored copy of *action*, or a fresh private copy."""
        for stored in delegation.recent_actions:
            if stored.id == action.id:
                return stored
        return action.model_copy(deep=True)

    def _apply_escalation(self, user_id: str, delegation: DomainDelegation) -> None:
        dynamics = self._store.config.dynamics
        now = self._store.clock.now()
        result = evaluate_delegation_level(delegation, dynamics, now)

        if result.direction == "upgrade":
            delegation.current_level = result.new_level
            delegation.last_adjusted = now
            delegation.last_escalated = now
            logger.info(
                "Delegation upgraded",
                extra={
                    "user_id": user_id,
                    "domain": delegation.domain.value,
                    "level": result.new_level.slug,
                },
            )
            self._bus.emit(
                DelegationUpgraded(user_id=user_id, domain=delegation.domain, level=result.new_level)
            )
        elif result.direction == "downgrade":
            delegation.current_level = result.new_level
            delegation.last_adjusted = now
            logger.info(
                "Delegation downgraded",
                extra={
                    "user_id": user_id,
                    "domain": delegation.domain.value,
                    "level": result.new_level.slug,
                },
            )
            self._bus.emit(
                DelegationDowngraded(user_id=user_id, domain=delegation.domain, level=result.new_level)
            )

        if result.trust_low:
            logger.warning(
                "Trust below warning threshold",
                extra={
                    "user_id": user_id,
                    "domain": delegation.domain.value,
                    "trust_score": delegation.trust_score,
                },
            )
            self._bus.emit(
                TrustLowWarning(
                    user_id=user_id,
                    domain=delegation.domain,
                    score=delegation.trust_score,
                )
            )


def refresh_global_trust(profile: DelegationProfile) -> float:
    """Recompute and store the unweighted mean of the profile's domain scores."""
    profile.global_trust_level = clamp_score(
        mean_trust(d.trust_score for d in profile.domains.values())
    )
    return profile.global_trust_level
