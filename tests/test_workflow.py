# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for proposals, undo, explicit feedback and permission requests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from aico_autonomy.config import AutonomyConfig, HistoryLimits
from aico_autonomy.controller import AutonomyController
from aico_autonomy.errors import DelegationCeilingError
from aico_autonomy.events import (
    ActionRejected,
    AutonomyEvent,
    PermissionDenied,
    PermissionGranted,
    PermissionRequested,
)
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import ActionTiming, AutonomousAction
from aico_autonomy.types import (
    DelegationDomain,
    DelegationLevel,
    FeedbackType,
    PermissionScope,
    TrustOutcome,
)
from aico_autonomy.workflow.presentation import build_alternatives, build_presentation

if TYPE_CHECKING:
    from conftest import FrozenClock, RecordingExecutor, RecordingNotifier

LIGHTING = DelegationDomain.LIGHTING


def _propose(controller: AutonomyController, user: str, action: AutonomousAction) -> str:
    decision = controller.attempt_action(user, action)
    assert decision.proposal_id is not None
    return decision.proposal_id


# ---------------------------------------------------------------------------
# TestPresentation
# ---------------------------------------------------------------------------


class TestPresentation:
    def test_known_action_type_gets_table_headline(
        self, action_factory: Callable[..., AutonomousAction]
    ) -> None:
        presentation = build_presentation(action_factory())
        assert presentation.headline == "Lighting adjustment"
        assert presentation.explanation == "Evening routine detected"
        assert presentation.voice_script == "Dim the living room lights. Evening routine detected"
        assert presentation.ambient_signal == "breath_of_light"

    def test_unknown_type_falls_back_to_description(
        self, action_factory: Callable[..., AutonomousAction]
    ) -> None:
        action = action_factory(
            domain=DelegationDomain.ENTERTAINMENT,
            type="queue_playlist",
            description="Queue the dinner playlist",
            reason=None,
        )
        presentation = build_presentation(action)
        assert presentation.headline == "Queue the dinner playlist"
        assert presentation.explanation == "Queue the dinner playlist"
        assert presentation.ambient_signal == "notification_chime"

    def test_temperature_change_offers_a_gentler_alternative(
        self, action_factory: Callable[..., AutonomousAction]
    ) -> None:
        action = action_factory(domain=DelegationDomain.CLIMATE, type="adjust_temperature")
        alternatives = build_alternatives(action)
        assert len(alternatives) == 1
        assert alternatives[0].action.id == f"{action.id}_alt1"
        assert alternatives[0].action.description == "Smaller temperature change"
        assert "Less energy saved" in alternatives[0].tradeoffs

    def test_no_alternatives_for_unlisted_type(
        self, action_factory: Callable[..., AutonomousAction]
    ) -> None:
        assert build_alternatives(action_factory(type="set_reminder")) == []


# ---------------------------------------------------------------------------
# TestProposals
# ---------------------------------------------------------------------------


class TestProposals:
    def test_approve_executes_and_records_appreciation(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory()
        proposal_id = _propose(controller, user, action)
        executed = controller.approve_proposal(proposal_id)
        assert executed is not None
        assert executed.id == action.id
        assert executed.executed_at is not None
        assert [a.id for a in executor.dispatched] == [action.id]
        history = controller.get_trust_history(user)
        assert [e.outcome for e in history] == [TrustOutcome.APPRECIATED_ACTION]
        assert history[0].user_feedback is not None
        assert history[0].user_feedback.type is FeedbackType.THUMBS_UP
        assert controller.get_pending_proposals(user) == []

    def test_approve_twice_executes_once(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        proposal_id = _propose(controller, user, action_factory())
        assert controller.approve_proposal(proposal_id) is not None
        assert controller.approve_proposal(proposal_id) is None
        assert len(executor.dispatched) == 1
        assert len(controller.get_trust_history(user)) == 1

    def test_approve_unknown_id_is_noop(self, controller: AutonomyController, user: str) -> None:
        assert controller.approve_proposal("proposal_missing") is None

    def test_reject_records_rejection_and_downgrades(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory()
        proposal_id = _propose(controller, user, action)
        event = controller.reject_proposal(proposal_id, "Too dark")
        assert event is not None
        assert event.outcome is TrustOutcome.REJECTED
        # -8 * decay_rate 2.0 = -16, from 30 to 14: below lockout.
        assert event.score_after == 14.0
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.INFORM
        rejected = [e for e in events if isinstance(e, ActionRejected)]
        assert [(e.action_id, e.reason) for e in rejected] == [(action.id, "Too dark")]
        assert executor.dispatched == []

    def test_reject_twice_records_once(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        proposal_id = _propose(controller, user, action_factory())
        assert controller.reject_proposal(proposal_id) is not None
        assert controller.reject_proposal(proposal_id) is None
        assert len(controller.get_trust_history(user)) == 1

    def test_proposal_expires_after_ttl(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        _propose(controller, user, action_factory())
        proposal = controller.get_pending_proposals(user)[0]
        assert proposal.expires_at == clock.now() + timedelta(hours=1)

    def test_deadline_sets_expiry(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        deadline = clock.now() + timedelta(minutes=10)
        _propose(controller, user, action_factory(timing=ActionTiming(deadline=deadline)))
        assert controller.get_pending_proposals(user)[0].expires_at == deadline

    def test_expired_proposal_cannot_be_approved(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        executor: RecordingExecutor,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        proposal_id = _propose(controller, user, action_factory())
        clock.advance(hours=2)
        assert controller.approve_proposal(proposal_id) is None
        assert executor.dispatched == []
        assert controller.get_trust_history(user) == []
        assert any(isinstance(e, ActionRejected) and e.reason == "expired" for e in events)

    def test_naive_deadline_is_read_as_utc(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        timing = ActionTiming(deadline=datetime(2026, 3, 1, 12, 0))
        assert timing.deadline == datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
        proposal_id = _propose(controller, user, action_factory(timing=timing))
        assert controller.get_pending_proposals(user)[0].expires_at == timing.deadline

        clock.advance(hours=1)
        assert controller.approve_proposal(proposal_id) is not None
        assert len(executor.dispatched) == 1

    def test_naive_deadline_proposal_expires_cleanly(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        naive = ActionTiming(deadline=datetime(2026, 3, 1, 12, 0))
        late = _propose(controller, user, action_factory(timing=naive))
        swept = _propose(controller, user, action_factory(timing=naive))
        clock.advance(hours=5)

        assert controller.approve_proposal(late) is None
        assert [e.reason for e in events if isinstance(e, ActionRejected)] == ["expired"]
        assert controller.expire_pending(datetime(2026, 3, 1, 13, 0)) == [swept]
        assert controller.get_pending_proposals(user) == []
        assert controller.get_trust_history(user) == []

    def test_proposed_time_comes_from_engine_clock(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory()
        assert action.timing.proposed is None
        proposal_id = _propose(controller, user, action)
        clock.advance(minutes=5)
        executed = controller.approve_proposal(proposal_id)
        assert executed is not None
        assert executed.timing.proposed == clock.now() - timedelta(minutes=5)
        assert executed.executed_at == clock.now()
        assert action.timing.proposed is None

    def test_expire_pending_sweeps_stale_items_without_trust_effect(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        stale = _propose(controller, user, action_factory())
        clock.advance(minutes=50)
        fresh = _propose(controller, user, action_factory())
        clock.advance(minutes=20)
        assert controller.expire_pending() == [stale]
        assert [p.id for p in controller.get_pending_proposals(user)] == [fresh]
        assert controller.get_trust_history(user) == []
        assert controller.get_trust_score(user, LIGHTING) == 30.0


# ---------------------------------------------------------------------------
# TestUndoAndFeedback
# ---------------------------------------------------------------------------


class TestUndoAndFeedback:
    def test_undo_records_minor_correction_and_reverses(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(confidence=0.3)
        controller.attempt_action(user, action)
        event = controller.undo_action(action.id)
        assert event is not None
        assert event.outcome is TrustOutcome.MINOR_CORRECTION
        assert event.user_feedback is not None
        assert event.user_feedback.type is FeedbackType.UNDO
        assert [a.id for a in executor.reversed] == [action.id]

    def test_second_undo_is_noop(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(confidence=0.3)
        controller.attempt_action(user, action)
        assert controller.undo_action(action.id) is not None
        assert controller.undo_action(action.id) is None
        assert len(executor.reversed) == 1
        assert len(controller.get_trust_history(user)) == 1

    def test_undone_actions_are_tracked_by_the_store(self) -> None:
        store = AutonomyStore(AutonomyConfig(history=HistoryLimits(global_actions=2)))
        assert store.mark_undone("action_a")
        assert not store.mark_undone("action_a")
        assert store.mark_undone("action_b")
        assert store.mark_undone("action_c")
        # Oldest entry rolled over with the global history bound.
        assert store.mark_undone("action_a")

    def test_undo_after_reverse_window_is_recorded_but_not_reversed(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(confidence=0.3)
        controller.attempt_action(user, action)
        clock.advance(minutes=10)
        assert controller.undo_action(action.id) is not None
        assert executor.reversed == []

    def test_undo_of_irreversible_action_is_not_reversed(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(reversible=False)
        controller.approve_proposal(_propose(controller, user, action))
        assert controller.undo_action(action.id) is not None
        assert executor.reversed == []

    def test_undo_unknown_action_is_noop(self, controller: AutonomyController, user: str) -> None:
        assert controller.undo_action("action_missing") is None

    @pytest.mark.parametrize(
        ("feedback", "outcome", "feedback_type"),
        [
            ("positive", TrustOutcome.APPRECIATED_ACTION, FeedbackType.THUMBS_UP),
            ("negative", TrustOutcome.COMPLAINED, FeedbackType.THUMBS_DOWN),
            ("neutral", TrustOutcome.NEUTRAL, FeedbackType.THUMBS_UP),
        ],
    )
    def test_feedback_maps_to_outcome(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
        feedback: str,
        outcome: TrustOutcome,
        feedback_type: FeedbackType,
    ) -> None:
        action = action_factory(confidence=0.3)
        controller.attempt_action(user, action)
        event = controller.provide_feedback(action.id, feedback, "noted")  # type: ignore[arg-type]
        assert event is not None
        assert event.outcome is outcome
        assert event.user_feedback is not None
        assert event.user_feedback.type is feedback_type
        assert event.user_feedback.message == "noted"

    def test_feedback_on_unknown_action_is_noop(
        self, controller: AutonomyController, user: str
    ) -> None:
        assert controller.provide_feedback("action_missing", "positive") is None

    def test_unknown_feedback_kind_raises(
        self, controller: AutonomyController, user: str
    ) -> None:
        with pytest.raises(ValueError, match="feedback must be one of"):
            controller.provide_feedback("action_missing", "ecstatic")  # type: ignore[arg-type]


# ---------------------------------------------------------------------------
# TestPermissions
# ---------------------------------------------------------------------------


class TestPermissions:
    def test_request_is_stored_and_announced(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        events: list[AutonomyEvent],
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "You approve most lighting changes", permanent=True
        )
        assert request.scope is PermissionScope.DOMAIN
        assert request.current_level is DelegationLevel.SUGGEST
        assert request.expires_at == clock.now() + timedelta(hours=24)
        assert [r.id for r in controller.get_pending_permissions(user)] == [request.id]
        assert any(isinstance(e, PermissionRequested) for e in events)

    def test_one_shot_request_is_action_scoped(
        self, controller: AutonomyController, user: str
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "Just this once"
        )
        assert request.scope is PermissionScope.THIS_ACTION

    def test_request_above_ceiling_raises(
        self, controller: AutonomyController, user: str
    ) -> None:
        with pytest.raises(DelegationCeilingError) as exc_info:
            controller.request_permission(
                user, DelegationDomain.PURCHASES, DelegationLevel.AUTO_SILENT, "Shop for me"
            )
        assert exc_info.value.max_level is DelegationLevel.PROPOSE

    def test_request_not_above_current_raises(
        self, controller: AutonomyController, user: str
    ) -> None:
        with pytest.raises(ValueError, match="must be above the current level"):
            controller.request_permission(user, LIGHTING, DelegationLevel.SUGGEST, "Same level")

    def test_request_with_action_from_other_domain_raises(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        with pytest.raises(ValueError, match="does not match"):
            controller.request_permission(
                user,
                LIGHTING,
                DelegationLevel.PROPOSE,
                "Mismatch",
                action=action_factory(domain=DelegationDomain.CLIMATE),
            )

    def test_permanent_grant_sets_level_directly(
        self,
        controller: AutonomyController,
        user: str,
        events: list[AutonomyEvent],
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.AUTO_NOTIFY, "Skip the ladder", permanent=True
        )
        resolved = controller.respond_to_permission(request.id, granted=True)
        assert resolved is not None
        assert resolved.response is not None
        assert resolved.response.granted is True
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.AUTO_NOTIFY
        assert any(isinstance(e, PermissionGranted) for e in events)
        assert controller.get_pending_permissions(user) == []

    def test_grant_narrowed_to_one_action_keeps_level(
        self, controller: AutonomyController, user: str
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "Lasting", permanent=True
        )
        resolved = controller.respond_to_permission(
            request.id, granted=True, scope=PermissionScope.THIS_ACTION, conditions=["weekdays"]
        )
        assert resolved is not None
        assert resolved.response is not None
        assert resolved.response.conditions == ["weekdays"]
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.SUGGEST

    def test_one_shot_grant_executes_attached_action_once(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        notifier: RecordingNotifier,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(confidence=0.95)
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.AUTO_REVERSIBLE, "Dim now", action=action
        )
        controller.respond_to_permission(request.id, granted=True)
        controller.respond_to_permission(request.id, granted=True)
        assert [a.id for a in executor.dispatched] == [action.id]
        assert [a.id for _, a in notifier.notified] == [action.id]
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.SUGGEST

    def test_denial_leaves_level_unchanged(
        self,
        controller: AutonomyController,
        user: str,
        executor: RecordingExecutor,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "Please", action=action_factory()
        )
        resolved = controller.respond_to_permission(request.id, granted=False)
        assert resolved is not None
        assert resolved.response is not None
        assert resolved.response.granted is False
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.SUGGEST
        assert executor.dispatched == []
        assert [e.request_id for e in events if isinstance(e, PermissionDenied)] == [request.id]

    def test_expired_request_is_denied(
        self,
        controller: AutonomyController,
        user: str,
        clock: FrozenClock,
        events: list[AutonomyEvent],
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "Later", permanent=True
        )
        clock.advance(hours=25)
        assert controller.respond_to_permission(request.id, granted=True) is None
        assert controller.get_delegation_level(user, LIGHTING) is DelegationLevel.SUGGEST
        assert any(isinstance(e, PermissionDenied) for e in events)

    def test_expire_pending_sweeps_requests(
        self, controller: AutonomyController, user: str, clock: FrozenClock
    ) -> None:
        request = controller.request_permission(
            user, LIGHTING, DelegationLevel.PROPOSE, "Later", permanent=True
        )
        clock.advance(days=2)
        assert controller.expire_pending() == [request.id]
        assert controller.get_pending_permissions(user) == []
