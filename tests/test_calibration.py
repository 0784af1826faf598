# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Tests for learning phases, calibration state and the correction tally."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from aico_autonomy.calibration import next_calibration_state, phase_for_trust
from aico_autonomy.config import AutonomyConfig
from aico_autonomy.controller import AutonomyController
from aico_autonomy.events import AutonomyEvent, CalibrationPhaseChanged
from aico_autonomy.records import AutonomousAction
from aico_autonomy.types import (
    CalibrationState,
    DelegationDomain,
    LearningPhase,
    TrustOutcome,
)


def _phase_changes(events: list[AutonomyEvent]) -> list[LearningPhase]:
    return [e.phase for e in events if isinstance(e, CalibrationPhaseChanged)]


# ---------------------------------------------------------------------------
# TestPhaseBuckets
# ---------------------------------------------------------------------------


class TestPhaseBuckets:
    @pytest.mark.parametrize(
        ("trust", "phase"),
        [
            (0.0, LearningPhase.OBSERVATION),
            (19.9, LearningPhase.OBSERVATION),
            (20.0, LearningPhase.SUGGESTION),
            (49.9, LearningPhase.SUGGESTION),
            (50.0, LearningPhase.SUPERVISED),
            (74.9, LearningPhase.SUPERVISED),
            (75.0, LearningPhase.AUTONOMOUS),
            (100.0, LearningPhase.AUTONOMOUS),
        ],
    )
    def test_phase_for_trust(self, trust: float, phase: LearningPhase) -> None:
        assert phase_for_trust(trust) is phase

    @pytest.mark.parametrize(
        ("state", "trust", "expected"),
        [
            (CalibrationState.ESTABLISHED, 25.0, CalibrationState.RECALIBRATING),
            (CalibrationState.ESTABLISHED, 45.0, CalibrationState.ESTABLISHED),
            (CalibrationState.INITIAL, 25.0, CalibrationState.INITIAL),
            (CalibrationState.INITIAL, 65.0, CalibrationState.ESTABLISHED),
            (CalibrationState.RECALIBRATING, 45.0, CalibrationState.RECALIBRATING),
            (CalibrationState.RECALIBRATING, 61.0, CalibrationState.ESTABLISHED),
        ],
    )
    def test_state_transitions(
        self, state: CalibrationState, trust: float, expected: CalibrationState
    ) -> None:
        assert next_calibration_state(state, trust) is expected


# ---------------------------------------------------------------------------
# TestCalibrationMonitor
# ---------------------------------------------------------------------------


class TestCalibrationMonitor:
    def test_new_profile_starts_in_observation(
        self, controller: AutonomyController, user: str
    ) -> None:
        calibration = controller.get_calibration(user)
        assert calibration.learning_phase is LearningPhase.OBSERVATION
        assert calibration.calibration_state is CalibrationState.INITIAL

    def test_trust_change_moves_phase_once(
        self,
        controller: AutonomyController,
        user: str,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.record_trust_event(user, action_factory(), TrustOutcome.NEUTRAL)
        controller.record_trust_event(user, action_factory(), TrustOutcome.NEUTRAL)
        # Global trust sits near 30: the suggestion bucket.
        assert _phase_changes(events) == [LearningPhase.SUGGESTION]
        assert controller.get_calibration(user).learning_phase is LearningPhase.SUGGESTION

    @pytest.mark.parametrize("config", [AutonomyConfig(initial_trust=65.0)])
    def test_high_trust_establishes_calibration(
        self, controller: AutonomyController, user: str
    ) -> None:
        assert controller.update_calibration(user) is LearningPhase.SUPERVISED
        assert controller.get_calibration(user).calibration_state is CalibrationState.ESTABLISHED

    @pytest.mark.parametrize("config", [AutonomyConfig(auto_calibrate=False)])
    def test_manual_mode_waits_for_update(
        self,
        controller: AutonomyController,
        user: str,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        assert not controller.calibration.attached
        controller.record_trust_event(user, action_factory(), TrustOutcome.MINOR_CORRECTION)
        assert _phase_changes(events) == []
        calibration = controller.get_calibration(user)
        assert calibration.behavior_baseline.correction_history == []

        assert controller.update_calibration(user) is LearningPhase.SUGGESTION
        assert _phase_changes(events) == [LearningPhase.SUGGESTION]

    def test_attach_twice_subscribes_once(
        self,
        controller: AutonomyController,
        user: str,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.calibration.attach()
        controller.record_trust_event(user, action_factory(), TrustOutcome.MINOR_CORRECTION)
        history = controller.get_calibration(user).behavior_baseline.correction_history
        assert len(history) == 1
        assert history[0].frequency == 1
        assert len(_phase_changes(events)) == 1

    def test_detach_stops_automatic_updates(
        self,
        controller: AutonomyController,
        user: str,
        events: list[AutonomyEvent],
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.calibration.detach()
        assert not controller.calibration.attached
        controller.record_trust_event(user, action_factory(), TrustOutcome.NEUTRAL)
        assert _phase_changes(events) == []


# ---------------------------------------------------------------------------
# TestCorrectionTally
# ---------------------------------------------------------------------------


class TestCorrectionTally:
    def test_repeated_corrections_bump_frequency(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.record_trust_event(user, action_factory(), TrustOutcome.MINOR_CORRECTION)
        controller.record_trust_event(user, action_factory(), TrustOutcome.MINOR_CORRECTION)
        history = controller.get_calibration(user).behavior_baseline.correction_history
        assert len(history) == 1
        assert history[0].domain is DelegationDomain.LIGHTING
        assert history[0].original_action == "adjust_lights"
        assert history[0].correction == "minor_correction"
        assert history[0].frequency == 2

    def test_distinct_corrections_are_kept_apart(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.record_trust_event(user, action_factory(), TrustOutcome.MINOR_CORRECTION)
        controller.record_trust_event(
            user,
            action_factory(domain=DelegationDomain.CLIMATE, type="adjust_temperature"),
            TrustOutcome.COMPLAINED,
        )
        history = controller.get_calibration(user).behavior_baseline.correction_history
        assert [(r.original_action, r.correction) for r in history] == [
            ("adjust_lights", "minor_correction"),
            ("adjust_temperature", "complained"),
        ]

    def test_non_corrections_are_not_tallied(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        controller.record_trust_event(user, action_factory(), TrustOutcome.REJECTED)
        controller.record_trust_event(user, action_factory(), TrustOutcome.APPRECIATED_ACTION)
        assert controller.get_calibration(user).behavior_baseline.correction_history == []

    def test_undo_is_tallied_as_correction(
        self,
        controller: AutonomyController,
        user: str,
        action_factory: Callable[..., AutonomousAction],
    ) -> None:
        action = action_factory(confidence=0.3)
        controller.attempt_action(user, action)
        controller.undo_action(action.id)
        history = controller.get_calibration(user).behavior_baseline.correction_history
        assert [r.correction for r in history] == ["minor_correction"]
