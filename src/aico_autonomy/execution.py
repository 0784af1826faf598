# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Hand-off of authorised actions to the device executor.

``executed`` in this package means "authorised and handed off". The
dispatcher never waits for or verifies physical completion and never
retries; failures found downstream come back as trust events.
"""

from __future__ import annotations

import logging

from aico_autonomy.events import ActionExecuted, EventBus
from aico_autonomy.interfaces import DeviceExecutor, Notifier
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import AutonomousAction
from aico_autonomy.types import DelegationLevel

logger = logging.getLogger("aico.autonomy.execution")


class ActionDispatcher:
    """
    Marks actions executed, records them, and dispatches them.

    Shared by the decision engine (actions within delegation) and the
    workflow (approved proposals and one-shot permission grants).
    """

    def __init__(
        self,
        store: AutonomyStore,
        bus: EventBus,
        executor: DeviceExecutor,
        notifier: Notifier,
    ) -> None:
        self._store = store
        self._bus = bus
        self._executor = executor
        self._notifier = notifier

    def execute(
        self,
        user_id: str,
        action: AutonomousAction,
        level: DelegationLevel | None = None,
    ) -> AutonomousAction:
        """
        Execute a private copy of *action* on behalf of *user_id*.

        The copy is stamped with ``executed_at``, appended to the domain and
        global histories, announced as ``action:executed`` and handed to the
        device executor. When *level* is given the action ran without a
        human approving it, and the user is notified if their preferences
        ask for it.

        Args:
            user_id: The user the action runs for.
            action: The action to run. Never mutated.
            level: Delegation level that authorised an autonomous run, or
                None for human-approved runs.

        Returns:
            The executed copy as stored in the histories.
        """
        store = self._store
        with store.lock:
            now = store.clock.now()
            executed = action.engine_copy(now)
            executed.executed_at = now
            store.record_execution(user_id, executed)
            preferences = store.profile(user_id).preferences

        logger.info(
            "Action executed",
            extra={
                "user_id": user_id,
                "action_id": executed.id,
                "action_type": executed.type,
                "domain": executed.domain.value,
            },
        )
        self._bus.emit(ActionExecuted(user_id=user_id, action=executed))
        self._executor.dispatch(executed)

        if (
            level is not None
            and preferences.notify_on_auto_actions
            and preferences.notification_threshold <= level < DelegationLevel.AUTO_SILENT
        ):
            self._notifier.notify_action(user_id, executed)

        return executed

    def reverse(self, action: AutonomousAction) -> bool:
        """
        Ask the executor to undo *action* if it is still reversible.

        Returns:
            True if a reversal was dispatched.
        """
        if not action.reversibility.is_reversible or action.executed_at is None:
            return False
        elapsed = (self._store.clock.now() - action.executed_at).total_seconds()
        if elapsed > action.reversibility.reverse_window:
            logger.info(
                "Reverse window elapsed; undo recorded without reversal",
                extra={"action_id": action.id, "elapsed_seconds": elapsed},
            )
            return False
        self._executor.reverse(action)
        return True
