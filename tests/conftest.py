# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""Shared fixtures for aico-autonomy tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from aico_autonomy.config import AutonomyConfig
from aico_autonomy.controller import AutonomyController
from aico_autonomy.events import AutonomyEvent
from aico_autonomy.records import (
    ActionImpact,
    ActionProposal,
    ActionReason,
    AutonomousAction,
    Reversibility,
)
from aico_autonomy.types import DelegationDomain

USER = "alice"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.current = start or datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current += timedelta(**delta)
        return self.current


class RecordingExecutor:
    def __init__(self) -> None:
        self.dispatched: list[AutonomousAction] = []
        self.reversed: list[AutonomousAction] = []

    def dispatch(self, action: AutonomousAction) -> None:
        self.dispatched.append(action)

    def reverse(self, action: AutonomousAction) -> None:
        self.reversed.append(action)


class RecordingNotifier:
    def __init__(self) -> None:
        self.presented: list[tuple[str, ActionProposal]] = []
        self.notified: list[tuple[str, AutonomousAction]] = []

    def present_proposal(self, user_id: str, proposal: ActionProposal) -> None:
        self.presented.append((user_id, proposal))

    def notify_action(self, user_id: str, action: AutonomousAction) -> None:
        self.notified.append((user_id, action))


def make_action(
    domain: DelegationDomain = DelegationDomain.LIGHTING,
    type: str = "adjust_lights",
    confidence: float = 0.7,
    reversible: bool = True,
    affected_users: list[str] | None = None,
    financial_impact: float | None = None,
    **fields: Any,
) -> AutonomousAction:
    """Build an action with sensible defaults for tests."""
    return AutonomousAction(
        domain=domain,
        type=type,
        description=fields.pop("description", "Dim the living room lights"),
        reason=fields.pop("reason", ActionReason(primary="Evening routine detected")),
        confidence=confidence,
        reversibility=Reversibility(is_reversible=reversible),
        impact=ActionImpact(
            affected_users=affected_users if affected_users is not None else [USER],
            financial_impact=financial_impact,
        ),
        **fields,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def config() -> AutonomyConfig:
    return AutonomyConfig()


@pytest.fixture
def controller(
    config: AutonomyConfig,
    clock: FrozenClock,
    executor: RecordingExecutor,
    notifier: RecordingNotifier,
) -> AutonomyController:
    """A controller with a frozen clock and recording collaborators; not started."""
    return AutonomyController(config=config, clock=clock, executor=executor, notifier=notifier)


@pytest.fixture
def user(controller: AutonomyController) -> str:
    """ID of a user initialised on *controller*."""
    controller.initialize_user(USER)
    return USER


@pytest.fixture
def events(controller: AutonomyController) -> list[AutonomyEvent]:
    """Every event *controller* emits, in order."""
    received: list[AutonomyEvent] = []
    controller.subscribe(None, received.append)
    return received


@pytest.fixture
def action_factory() -> Callable[..., AutonomousAction]:
    return make_action
