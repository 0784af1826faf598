# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Pending proposals and the user gestures that resolve them.

A proposal is resolved by exactly one of approve, reject or expiry.
Approval is a positive trust signal (``appreciated_action``), rejection the
most punitive explicit one (``rejected``). Undoing an action that already
ran records the softer ``minor_correction``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Literal

from aico_autonomy.events import ActionProposed, ActionRejected, EventBus
from aico_autonomy.execution import ActionDispatcher
from aico_autonomy.interfaces import Notifier
from aico_autonomy.ledger import TrustLedger
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import (
    ActionProposal,
    AutonomousAction,
    TrustEvent,
    UserFeedback,
    as_utc,
)
from aico_autonomy.types import ApprovalType, FeedbackType, TrustOutcome
from aico_autonomy.workflow.presentation import build_alternatives, build_presentation

logger = logging.getLogger("aico.autonomy.workflow")

FeedbackKind = Literal["positive", "negative", "neutral"]

# Explicit feedback -> (outcome recorded, feedback type attached).
FEEDBACK_OUTCOMES: dict[str, tuple[TrustOutcome, FeedbackType]] = {
    "positive": (TrustOutcome.APPRECIATED_ACTION, FeedbackType.THUMBS_UP),
    "negative": (TrustOutcome.COMPLAINED, FeedbackType.THUMBS_DOWN),
    "neutral": (TrustOutcome.NEUTRAL, FeedbackType.THUMBS_UP),
}

EXPIRED_REASON = "expired"
DEFAULT_REJECT_REASON = "Rejected by user"


class ProposalWorkflow:
    """
    Creates proposals and resolves them into executions and trust events.

    All methods are idempotent with respect to their target: resolving an
    unknown, already-resolved or expired proposal returns None and changes
    nothing.
    """

    def __init__(
        self,
        store: AutonomyStore,
        ledger: TrustLedger,
        dispatcher: ActionDispatcher,
        bus: EventBus,
        notifier: Notifier,
    ) -> None:
        self._store = store
        self._ledger = ledger
        self._dispatcher = dispatcher
        self._bus = bus
        self._notifier = notifier

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_proposal(
        self,
        user_id: str,
        action: AutonomousAction,
        approval: ApprovalType,
    ) -> ActionProposal:
        """
        Store a pending proposal for *action* and announce it.

        The proposal expires at the action's deadline when it has one,
        otherwise ``config.proposal_ttl_seconds`` from now. Presenters are
        asked to show it when a confirmation is needed or the user wants to
        hear about suggestions.
        """
        store = self._store
        with store.lock:
            now = store.clock.now()
            expires_at = action.timing.deadline or now + timedelta(
                seconds=store.config.proposal_ttl_seconds
            )
            proposal = ActionProposal(
                user_id=user_id,
                action=action.engine_copy(now),
                presentation=build_presentation(action),
                required_approval=approval,
                created_at=now,
                expires_at=expires_at,
                alternatives=build_alternatives(action),
            )
            store.add_proposal(proposal)
            preferences = store.profile(user_id).preferences

        logger.info(
            "Action proposed",
            extra={
                "user_id": user_id,
                "proposal_id": proposal.id,
                "action_type": action.type,
                "approval": approval.value,
            },
        )
        self._bus.emit(ActionProposed(proposal=proposal))
        if approval == ApprovalType.CONFIRMATION or preferences.notify_on_suggestions:
            self._notifier.present_proposal(user_id, proposal)
        return proposal

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def approve_proposal(self, proposal_id: str) -> AutonomousAction | None:
        """
        Execute the proposed action and record ``appreciated_action``.

        Returns:
            The executed action, or None if the proposal is unknown,
            already resolved or expired.
        """
        store = self._store
        with store.lock:
            proposal = self._take_live(proposal_id)
            if proposal is None:
                return None

            executed = self._dispatcher.execute(proposal.user_id, proposal.action)
            self._ledger.record_trust_event(
                proposal.user_id,
                executed,
                TrustOutcome.APPRECIATED_ACTION,
                UserFeedback(type=FeedbackType.THUMBS_UP, timestamp=store.clock.now()),
            )
            logger.info(
                "Proposal approved",
                extra={"user_id": proposal.user_id, "proposal_id": proposal_id},
            )
            return executed

    def reject_proposal(self, proposal_id: str, reason: str | None = None) -> TrustEvent | None:
        """
        Drop the proposal and record ``rejected``.

        Returns:
            The recorded trust event, or None if the proposal is unknown,
            already resolved or expired.
        """
        store = self._store
        with store.lock:
            proposal = self._take_live(proposal_id)
            if proposal is None:
                return None

            message = reason or DEFAULT_REJECT_REASON
            self._bus.emit(ActionRejected(action_id=proposal.action.id, reason=message))
            event = self._ledger.record_trust_event(
                proposal.user_id,
                proposal.action,
                TrustOutcome.REJECTED,
                UserFeedback(
                    type=FeedbackType.THUMBS_DOWN,
                    message=reason,
                    timestamp=store.clock.now(),
                ),
            )
            logger.info(
                "Proposal rejected",
                extra={"user_id": proposal.user_id, "proposal_id": proposal_id, "reason": message},
            )
            return event

    def undo_action(self, action_id: str) -> TrustEvent | None:
        """
        Record ``minor_correction`` for an executed action and reverse it.

        The device executor is asked to reverse the action only while it is
        reversible and inside its reverse window. A second undo of the same
        action is a no-op.

        Returns:
            The recorded trust event, or None if the action is unknown or
            was already undone.
        """
        store = self._store
        with store.lock:
            found = store.find_executed(action_id)
            if found is None or not store.mark_undone(action_id):
                return None
            user_id, action = found

            event = self._ledger.record_trust_event(
                user_id,
                action,
                TrustOutcome.MINOR_CORRECTION,
                UserFeedback(type=FeedbackType.UNDO, timestamp=store.clock.now()),
            )
            reversed_ = self._dispatcher.reverse(action)
            logger.info(
                "Action undone",
                extra={"user_id": user_id, "action_id": action_id, "reversed": reversed_},
            )
            return event

    def provide_feedback(
        self,
        action_id: str,
        feedback: FeedbackKind,
        message: str | None = None,
    ) -> TrustEvent | None:
        """
        Record explicit feedback on an executed action.

        ``positive`` maps to ``appreciated_action``, ``negative`` to
        ``complained`` and ``neutral`` to ``neutral``.

        Returns:
            The recorded trust event, or None if the action is unknown.

        Raises:
            ValueError: If *feedback* is not one of the three kinds.
        """
        mapping = FEEDBACK_OUTCOMES.get(feedback)
        if mapping is None:
            raise ValueError(
                f"feedback must be one of {sorted(FEEDBACK_OUTCOMES)}; got {feedback!r}."
            )
        outcome, feedback_type = mapping

        store = self._store
        with store.lock:
            found = store.find_executed(action_id)
            if found is None:
                return None
            user_id, action = found
            return self._ledger.record_trust_event(
                user_id,
                action,
                outcome,
                UserFeedback(type=feedback_type, message=message, timestamp=store.clock.now()),
            )

    # ------------------------------------------------------------------
    # Expiry
    # ------------------------------------------------------------------

    def expire_pending(self, now: datetime | None = None) -> list[str]:
        """
        Remove every proposal past its expiry time.

        Expiry is trust-neutral: ``action:rejected`` is emitted with reason
        ``'expired'`` but no trust event is recorded.

        Returns:
            IDs of the proposals that expired.
        """
        store = self._store
        with store.lock:
            moment = as_utc(now) if now is not None else store.clock.now()
            expired = [p for p in store.pending_proposals() if p.is_expired(moment)]
            for proposal in expired:
                store.pop_proposal(proposal.id)
                self._announce_expiry(proposal)
        return [proposal.id for proposal in expired]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _take_live(self, proposal_id: str) -> ActionProposal | None:
        """Pop a pending proposal, expiring it instead if it is stale."""
        proposal = self._store.get_proposal(proposal_id)
        if proposal is None:
            return None
        expired = proposal.is_expired(self._store.clock.now())
        self._store.pop_proposal(proposal_id)
        if expired:
            self._announce_expiry(proposal)
            return None
        return proposal

    def _announce_expiry(self, proposal: ActionProposal) -> None:
        logger.info(
            "Proposal expired",
            extra={"user_id": proposal.user_id, "proposal_id": proposal.id},
        )
        self._bus.emit(ActionRejected(action_id=proposal.action.id, reason=EXPIRED_REASON))
