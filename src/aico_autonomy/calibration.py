# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Per-user calibration: learning phase, calibration state and correction tally.

The learning phase is a coarse bucket of the user's global trust that
guides how assertive the house should be overall:

=============  =================
Global trust   Phase
=============  =================
< 20           observation
< 50           suggestion
< 75           supervised
otherwise      autonomous
=============  =================
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from aico_autonomy.events import (
    AutonomyEvent,
    CalibrationPhaseChanged,
    EventBus,
    EventKind,
    TrustChanged,
)
from aico_autonomy.profiles.models import CorrectionRecord
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.types import CalibrationState, DelegationDomain, LearningPhase, TrustOutcome

logger = logging.getLogger("aico.autonomy.calibration")

# (upper bound, phase) pairs checked in order; scores at or above the last
# bound are autonomous.
PHASE_BOUNDS: tuple[tuple[float, LearningPhase], ...] = (
    (20.0, LearningPhase.OBSERVATION),
    (50.0, LearningPhase.SUGGESTION),
    (75.0, LearningPhase.SUPERVISED),
)

RECALIBRATE_BELOW = 30.0
ESTABLISH_ABOVE = 60.0


def phase_for_trust(trust: float) -> LearningPhase:
    """Return the learning phase for a global trust level."""
    for bound, phase in PHASE_BOUNDS:
        if trust < bound:
            return phase
    return LearningPhase.AUTONOMOUS


def next_calibration_state(state: CalibrationState, trust: float) -> CalibrationState:
    """
    Return the calibration state after observing *trust*.

    An established calibration starts recalibrating when trust drops below
    30; any other state becomes established once trust exceeds 60.
    """
    if trust < RECALIBRATE_BELOW and state == CalibrationState.ESTABLISHED:
        return CalibrationState.RECALIBRATING
    if trust > ESTABLISH_ABOVE and state != CalibrationState.ESTABLISHED:
        return CalibrationState.ESTABLISHED
    return state


class CalibrationMonitor:
    """
    Keeps each user's :class:`TrustCalibration` in step with their trust.

    Call :meth:`attach` to re-evaluate automatically on every
    ``trust:changed`` event; :meth:`update` stays available for manual
    re-evaluation (for example after a decay tick).
    """

    def __init__(self, store: AutonomyStore, bus: EventBus) -> None:
        self._store = store
        self._bus = bus
        self._unsubscribe: Callable[[], None] | None = None

    def attach(self) -> None:
        """Subscribe to ``trust:changed``. Calling twice has no extra effect."""
        if self._unsubscribe is None:
            self._unsubscribe = self._bus.subscribe(EventKind.TRUST_CHANGED, self._on_event)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def update(self, user_id: str) -> LearningPhase:
        """
        Re-evaluate the learning phase and calibration state of *user_id*.

        Emits ``calibration:phase-changed`` only when the phase changes.

        Returns:
            The learning phase after the update.

        Raises:
            UnknownUserError: If the user has no profile.
        """
        store = self._store
        with store.lock:
            trust = store.profile(user_id).global_trust_level
            calibration = store.calibration(user_id)

            phase = phase_for_trust(trust)
            changed = phase != calibration.learning_phase
            if changed:
                calibration.learning_phase = phase

            state = next_calibration_state(calibration.calibration_state, trust)
            if state != calibration.calibration_state:
                logger.info(
                    "Calibration state changed",
                    extra={"user_id": user_id, "state": state.value},
                )
                calibration.calibration_state = state

        if changed:
            logger.info(
                "Learning phase changed",
                extra={"user_id": user_id, "phase": phase.value},
            )
            self._bus.emit(CalibrationPhaseChanged(user_id=user_id, phase=phase))
        return phase

    def record_correction(
        self,
        user_id: str,
        domain: DelegationDomain,
        action_type: str,
        outcome: TrustOutcome,
    ) -> CorrectionRecord:
        """
        Tally one correction of *action_type* into the user's baseline.

        Repeated corrections of the same kind bump ``frequency`` on the
        existing record instead of adding a new one.
        """
        store = self._store
        with store.lock:
            corrections = store.calibration(user_id).behavior_baseline.correction_history
            now = store.clock.now()
            for record in corrections:
                if (
                    record.domain == domain
                    and record.original_action == action_type
                    and record.correction == outcome.value
                ):
                    record.frequency += 1
                    record.last_occurred = now
                    return record
            record = CorrectionRecord(
                domain=domain,
                original_action=action_type,
                correction=outcome.value,
                last_occurred=now,
            )
            corrections.append(record)
            return record

    def _on_event(self, event: AutonomyEvent) -> None:
        if not isinstance(event, TrustChanged):
            return
        if event.outcome.is_correction:
            history = self._store.profile(event.user_id).trust_history
            # The ledger appends the trust event before announcing it.
            if history and history[-1].domain == event.domain:
                self.record_correction(
                    event.user_id, event.domain, history[-1].action_type, event.outcome
                )
        self.update(event.user_id)
