# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Protocols for the collaborators the engine consumes.

The engine only supplies data: presenters render proposals, executors talk
to devices, and the clock says what time it is. All three are injected so
tests and hosts can swap them freely.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

from aico_autonomy.records import ActionProposal, AutonomousAction


@runtime_checkable
class Clock(Protocol):
    """Source of the current UTC time."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(tz=timezone.utc)


@runtime_checkable
class Notifier(Protocol):
    """Presents proposals and notifications through ambient or voice channels."""

    def present_proposal(self, user_id: str, proposal: ActionProposal) -> None:
        """Render *proposal* (headline, explanation, ambient signal) to the user."""
        ...

    def notify_action(self, user_id: str, action: AutonomousAction) -> None:
        """Tell the user that *action* was carried out on their behalf."""
        ...


@runtime_checkable
class DeviceExecutor(Protocol):
    """
    Applies authorised actions to hardware.

    Dispatch is fire-and-forget: the engine does not wait for or verify
    physical completion. Failures discovered later must be reported back
    as trust events.
    """

    def dispatch(self, action: AutonomousAction) -> None:
        """Hand *action* off for execution."""
        ...

    def reverse(self, action: AutonomousAction) -> None:
        """Undo a previously dispatched *action*."""
        ...


class NullNotifier:
    """Notifier that drops everything. Used when the host wires none."""

    def present_proposal(self, user_id: str, proposal: ActionProposal) -> None:
        return None

    def notify_action(self, user_id: str, action: AutonomousAction) -> None:
        return None


class NullExecutor:
    """Executor that drops everything. Used when the host wires none."""

    def dispatch(self, action: AutonomousAction) -> None:
        return None

    def reverse(self, action: AutonomousAction) -> None:
        return None
