# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from types import TracebackType
from typing import Any

from aico_autonomy.calibration import CalibrationMonitor
from aico_autonomy.config import AutonomyConfig
from aico_autonomy.decay import DecayScheduler
from aico_autonomy.decisions import DecisionEngine
from aico_autonomy.events import EventBus, EventHandler, EventKind
from aico_autonomy.execution import ActionDispatcher
from aico_autonomy.interfaces import Clock, DeviceExecutor, NullExecutor, NullNotifier, Notifier
from aico_autonomy.ledger import TrustLedger
from aico_autonomy.profiles.models import (
    DelegationPreferences,
    DelegationProfile,
    TrustCalibration,
)
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import (
    ActionDecision,
    ActionProposal,
    AutonomousAction,
    PermissionRequest,
    TrustEvent,
    UserFeedback,
)
from aico_autonomy.types import (
    AutonomyMode,
    DelegationContext,
    DelegationDomain,
    DelegationLevel,
    LearningPhase,
    PermissionScope,
    TrustOutcome,
)
from aico_autonomy.workflow import FeedbackKind, PermissionWorkflow, ProposalWorkflow

logger = logging.getLogger("aico.autonomy")


class AutonomyController:
    """
    Trust-based autonomy engine for one household.

    Composes the profile store, trust ledger, decision engine, proposal and
    permission workflows, calibration monitor and decay scheduler around a
    single :class:`~aico_autonomy.profiles.AutonomyStore`. Every public
    method is safe to call from any thread; getters return deep copies.

    The decay scheduler only runs between :meth:`start` and :meth:`stop`
    (or inside a ``with`` block). Without it, call :meth:`apply_decay`
    directly.

    Example::

        controller = AutonomyController()
        controller.initialize_user("alice")

        decision = controller.attempt_action("alice", AutonomousAction(
            domain=DelegationDomain.CLIMATE,
            type="adjust_temperature",
            description="Lower the bedroom to 20°C",
            confidence=0.7,
        ))
        if decision.proposal_id:
            controller.approve_proposal(decision.proposal_id)
    """

    def __init__(
        self,
        config: AutonomyConfig | None = None,
        clock: Clock | None = None,
        executor: DeviceExecutor | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._config = config or AutonomyConfig()
        self._store = AutonomyStore(self._config, clock)
        self._bus = EventBus()

        notifier = notifier or NullNotifier()
        self._dispatcher = ActionDispatcher(
            self._store, self._bus, executor or NullExecutor(), notifier
        )
        self.ledger = TrustLedger(self._store, self._bus)
        self.proposals = ProposalWorkflow(
            self._store, self.ledger, self._dispatcher, self._bus, notifier
        )
        self.permissions = PermissionWorkflow(self._store, self._dispatcher, self._bus)
        self.decisions = DecisionEngine(self._store, self.proposals, self._dispatcher)
        self.calibration = CalibrationMonitor(self._store, self._bus)
        if self._config.auto_calibrate:
            self.calibration.attach()

        self._scheduler = DecayScheduler(self.apply_decay, self._config.decay_interval_seconds)

    @property
    def config(self) -> AutonomyConfig:
        return self._config

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the background decay scheduler."""
        self._scheduler.start()

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        """Stop the background decay scheduler."""
        self._scheduler.stop(wait=wait, timeout=timeout)

    def is_running(self) -> bool:
        return self._scheduler.is_running()

    def __enter__(self) -> AutonomyController:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.stop()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def initialize_user(self, user_id: str) -> DelegationProfile:
        """
        Create a profile with conservative defaults for *user_id*.

        Calling again for an existing user leaves the profile untouched.

        Returns:
            A copy of the user's profile.

        Raises:
            TypeError:  If user_id is not a string.
            ValueError: If user_id is empty.
        """
        profile, created = self._store.create_profile(user_id)
        if created:
            logger.info("User initialised", extra={"user_id": user_id})
        with self._store.lock:
            return profile.model_copy(deep=True)

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    def attempt_action(
        self,
        user_id: str,
        action: AutonomousAction,
        context: DelegationContext | None = None,
    ) -> ActionDecision:
        """See :meth:`DecisionEngine.attempt_action`."""
        return self.decisions.attempt_action(user_id, action, context)

    def require_action(
        self,
        user_id: str,
        action: AutonomousAction,
        context: DelegationContext | None = None,
    ) -> ActionDecision:
        """See :meth:`DecisionEngine.require_action`."""
        return self.decisions.require_action(user_id, action, context)

    # ------------------------------------------------------------------
    # Proposals and feedback
    # ------------------------------------------------------------------

    def approve_proposal(self, proposal_id: str) -> AutonomousAction | None:
        executed = self.proposals.approve_proposal(proposal_id)
        return self._copy(executed)

    def reject_proposal(self, proposal_id: str, reason: str | None = None) -> TrustEvent | None:
        return self.proposals.reject_proposal(proposal_id, reason)

    def undo_action(self, action_id: str) -> TrustEvent | None:
        return self.proposals.undo_action(action_id)

    def provide_feedback(
        self,
        action_id: str,
        feedback: FeedbackKind,
        message: str | None = None,
    ) -> TrustEvent | None:
        return self.proposals.provide_feedback(action_id, feedback, message)

    def record_trust_event(
        self,
        user_id: str,
        action: AutonomousAction,
        outcome: TrustOutcome,
        feedback: UserFeedback | None = None,
    ) -> TrustEvent:
        """Record an outcome observed outside the approval workflow."""
        return self.ledger.record_trust_event(user_id, action, outcome, feedback)

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def request_permission(
        self,
        user_id: str,
        domain: DelegationDomain,
        requested_level: DelegationLevel,
        reason: str,
        permanent: bool = False,
        action: AutonomousAction | None = None,
    ) -> PermissionRequest:
        return self.permissions.request_permission(
            user_id, domain, requested_level, reason, permanent, action
        )

    def respond_to_permission(
        self,
        request_id: str,
        granted: bool,
        scope: PermissionScope | None = None,
        conditions: list[str] | None = None,
    ) -> PermissionRequest | None:
        return self.permissions.respond_to_permission(request_id, granted, scope, conditions)

    def expire_pending(self, now: datetime | None = None) -> list[str]:
        """
        Drop every expired proposal and permission request.

        Returns:
            IDs of the proposals and requests removed.
        """
        with self._store.lock:
            return self.proposals.expire_pending(now) + self.permissions.expire_pending(now)

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def update_calibration(self, user_id: str) -> LearningPhase:
        return self.calibration.update(user_id)

    def apply_decay(self) -> list[str]:
        """
        Run one decay tick.

        Erodes every domain score, refreshes calibration for users whose
        trust moved, and sweeps expired proposals and permission requests.
        This is the task the background scheduler runs.

        Returns:
            IDs of users whose scores changed.
        """
        with self._store.lock:
            changed = self.ledger.apply_decay()
            for user_id in changed:
                self.calibration.update(user_id)
            self.expire_pending()
        return changed

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def set_autonomy_mode(self, mode: AutonomyMode) -> None:
        """Switch the autonomy mode, which sets the learning rate for all users."""
        with self._store.lock:
            previous = self._store.mode
            self._store.mode = mode
        logger.info(
            "Autonomy mode changed",
            extra={"previous": previous.value, "mode": mode.value},
        )

    def get_autonomy_mode(self) -> AutonomyMode:
        return self._store.mode

    def set_max_level(
        self,
        user_id: str,
        domain: DelegationDomain,
        max_level: DelegationLevel,
    ) -> None:
        """
        Change the ceiling of *domain*.

        A current level above the new ceiling is lowered with it.
        """
        store = self._store
        with store.lock:
            delegation = store.domain(user_id, domain)
            if delegation.current_level > max_level:
                delegation.current_level = max_level
                delegation.last_adjusted = store.clock.now()
            delegation.max_level = max_level
        logger.info(
            "Delegation ceiling changed",
            extra={"user_id": user_id, "domain": domain.value, "max_level": max_level.slug},
        )

    def update_preferences(self, user_id: str, **changes: Any) -> DelegationPreferences:
        """
        Replace selected delegation preferences of *user_id*.

        Args:
            user_id: The profile to change.
            **changes: Field values of
                :class:`~aico_autonomy.profiles.DelegationPreferences`.

        Returns:
            The new preferences.

        Raises:
            ValueError: If a field name is unknown.
            pydantic.ValidationError: If a value is invalid.
        """
        unknown = set(changes) - set(DelegationPreferences.model_fields)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}.")
        with self._store.lock:
            profile = self._store.profile(user_id)
            merged = profile.preferences.model_dump()
            merged.update(changes)
            profile.preferences = DelegationPreferences.model_validate(merged)
            return profile.preferences

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_profile(self, user_id: str) -> DelegationProfile:
        with self._store.lock:
            return self._store.profile(user_id).model_copy(deep=True)

    def get_delegation_level(self, user_id: str, domain: DelegationDomain) -> DelegationLevel:
        with self._store.lock:
            return self._store.domain(user_id, domain).current_level

    def get_trust_score(self, user_id: str, domain: DelegationDomain | None = None) -> float:
        """Return the domain score, or the global trust level when *domain* is None."""
        with self._store.lock:
            if domain is None:
                return self._store.profile(user_id).global_trust_level
            return self._store.domain(user_id, domain).trust_score

    def get_calibration(self, user_id: str) -> TrustCalibration:
        with self._store.lock:
            return self._store.calibration(user_id).model_copy(deep=True)

    def get_pending_proposals(self, user_id: str | None = None) -> list[ActionProposal]:
        with self._store.lock:
            return [p.model_copy(deep=True) for p in self._store.pending_proposals(user_id)]

    def get_pending_permissions(self, user_id: str | None = None) -> list[PermissionRequest]:
        with self._store.lock:
            return [r.model_copy(deep=True) for r in self._store.pending_permissions(user_id)]

    def get_recent_actions(
        self,
        user_id: str | None = None,
        limit: int = 50,
    ) -> list[AutonomousAction]:
        """Return up to *limit* most recently executed actions, oldest first."""
        if limit < 1:
            raise ValueError(f"limit must be >= 1; got {limit}.")
        with self._store.lock:
            actions = self._store.recent_actions(user_id)[-limit:]
            return [action.model_copy(deep=True) for action in actions]

    def get_trust_history(self, user_id: str, limit: int | None = None) -> list[TrustEvent]:
        return self.ledger.history(user_id, limit)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def subscribe(self, kind: EventKind | None, handler: EventHandler) -> Callable[[], None]:
        """
        Register *handler* for events of *kind* (all events when None).

        Returns:
            A callable that removes the registration.
        """
        return self._bus.subscribe(kind, handler)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _copy(self, action: AutonomousAction | None) -> AutonomousAction | None:
        if action is None:
            return None
        with self._store.lock:
            return action.model_copy(deep=True)
