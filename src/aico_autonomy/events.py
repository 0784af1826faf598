# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Typed event stream emitted by the autonomy engine.

The variant set is closed: every event is one of the frozen models below,
discriminated by ``kind``. Subscribers register for one :class:`EventKind`
or for all events; dispatch is synchronous and in registration order.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, Callable, Literal, Union

from pydantic import BaseModel, Field

from aico_autonomy.records import ActionProposal, AutonomousAction, PermissionRequest
from aico_autonomy.types import DelegationDomain, DelegationLevel, LearningPhase, TrustOutcome

logger = logging.getLogger("aico.autonomy.events")


class EventKind(str, Enum):
    TRUST_CHANGED = "trust:changed"
    DELEGATION_UPGRADED = "delegation:upgraded"
    DELEGATION_DOWNGRADED = "delegation:downgraded"
    ACTION_PROPOSED = "action:proposed"
    ACTION_EXECUTED = "action:executed"
    ACTION_REJECTED = "action:rejected"
    PERMISSION_REQUESTED = "permission:requested"
    PERMISSION_GRANTED = "permission:granted"
    PERMISSION_DENIED = "permission:denied"
    CALIBRATION_PHASE_CHANGED = "calibration:phase-changed"
    WARNING_TRUST_LOW = "warning:trust-low"


class TrustChanged(BaseModel, frozen=True):
    kind: Literal[EventKind.TRUST_CHANGED] = EventKind.TRUST_CHANGED
    user_id: str
    domain: DelegationDomain
    score: float
    delta: float
    outcome: TrustOutcome


class DelegationUpgraded(BaseModel, frozen=True):
    kind: Literal[EventKind.DELEGATION_UPGRADED] = EventKind.DELEGATION_UPGRADED
    user_id: str
    domain: DelegationDomain
    level: DelegationLevel


class DelegationDowngraded(BaseModel, frozen=True):
    kind: Literal[EventKind.DELEGATION_DOWNGRADED] = EventKind.DELEGATION_DOWNGRADED
    user_id: str
    domain: DelegationDomain
    level: DelegationLevel


class ActionProposed(BaseModel, frozen=True):
    kind: Literal[EventKind.ACTION_PROPOSED] = EventKind.ACTION_PROPOSED
    proposal: ActionProposal


class ActionExecuted(BaseModel, frozen=True):
    kind: Literal[EventKind.ACTION_EXECUTED] = EventKind.ACTION_EXECUTED
    user_id: str
    action: AutonomousAction


class ActionRejected(BaseModel, frozen=True):
    kind: Literal[EventKind.ACTION_REJECTED] = EventKind.ACTION_REJECTED
    action_id: str
    reason: str


class PermissionRequested(BaseModel, frozen=True):
    kind: Literal[EventKind.PERMISSION_REQUESTED] = EventKind.PERMISSION_REQUESTED
    request: PermissionRequest


class PermissionGranted(BaseModel, frozen=True):
    kind: Literal[EventKind.PERMISSION_GRANTED] = EventKind.PERMISSION_GRANTED
    request_id: str


class PermissionDenied(BaseModel, frozen=True):
    kind: Literal[EventKind.PERMISSION_DENIED] = EventKind.PERMISSION_DENIED
    request_id: str


class CalibrationPhaseChanged(BaseModel, frozen=True):
    kind: Literal[EventKind.CALIBRATION_PHASE_CHANGED] = EventKind.CALIBRATION_PHASE_CHANGED
    user_id: str
    phase: LearningPhase


class TrustLowWarning(BaseModel, frozen=True):
    kind: Literal[EventKind.WARNING_TRUST_LOW] = EventKind.WARNING_TRUST_LOW
    user_id: str
    domain: DelegationDomain
    score: float


AutonomyEvent = Annotated[
    Union[
        TrustChanged,
        DelegationUpgraded,
        DelegationDowngraded,
        ActionProposed,
        ActionExecuted,
        ActionRejected,
        PermissionRequested,
        PermissionGranted,
        PermissionDenied,
        CalibrationPhaseChanged,
        TrustLowWarning,
    ],
    Field(discriminator="kind"),
]
"""Union of every event the engine emits, discriminated by ``kind``."""

EventHandler = Callable[[AutonomyEvent], None]


def describe_event(event: AutonomyEvent) -> str:
    """Return a one-line summary of *event* for logs and debugging."""
    match event:
        case TrustChanged():
            return (
                f"trust {event.domain.value} for '{event.user_id}' is now "
                f"{event.score:.1f} ({event.delta:+.2f}, {event.outcome.value})"
            )
        case DelegationUpgraded():
            return f"{event.domain.value} for '{event.user_id}' upgraded to {event.level.slug}"
        case DelegationDowngraded():
            return f"{event.domain.value} for '{event.user_id}' downgraded to {event.level.slug}"
        case ActionProposed():
            return (
                f"proposal {event.proposal.id} for '{event.proposal.user_id}': "
                f"{event.proposal.presentation.headline}"
            )
        case ActionExecuted():
            return f"action {event.action.id} ({event.action.type}) executed for '{event.user_id}'"
        case ActionRejected():
            return f"action {event.action_id} rejected: {event.reason}"
        case PermissionRequested():
            return (
                f"permission {event.request.id} requested: {event.request.domain.value} "
                f"to {event.request.requested_level.slug}"
            )
        case PermissionGranted():
            return f"permission {event.request_id} granted"
        case PermissionDenied():
            return f"permission {event.request_id} denied"
        case CalibrationPhaseChanged():
            return f"calibration for '{event.user_id}' entered {event.phase.value}"
        case TrustLowWarning():
            return (
                f"trust in {event.domain.value} for '{event.user_id}' is low "
                f"({event.score:.1f})"
            )
        case _:
            raise TypeError(f"Unhandled autonomy event: {event!r}")


class EventBus:
    """
    Synchronous in-process dispatcher for :data:`AutonomyEvent` values.

    A failing handler is logged and skipped; it never interrupts the
    operation that emitted the event or the remaining handlers.

    Example::

        bus = EventBus()
        unsubscribe = bus.subscribe(EventKind.DELEGATION_UPGRADED, print)
        ...
        unsubscribe()
    """

    def __init__(self) -> None:
        self._handlers: dict[EventKind | None, list[EventHandler]] = {}

    def subscribe(
        self,
        kind: EventKind | None,
        handler: EventHandler,
    ) -> Callable[[], None]:
        """
        Register *handler* for events of *kind*, or for all events when
        *kind* is None.

        Returns:
            A callable that removes the registration.
        """
        handlers = self._handlers.setdefault(kind, [])
        handlers.append(handler)

        def unsubscribe() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return unsubscribe

    def emit(self, event: AutonomyEvent) -> None:
        """Deliver *event* to handlers for its kind, then to catch-all handlers."""
        logger.debug(describe_event(event), extra={"event_kind": event.kind.value})
        targets = list(self._handlers.get(event.kind, ())) + list(self._handlers.get(None, ()))
        for handler in targets:
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Event handler failed",
                    extra={"event_kind": event.kind.value},
                )

    def clear(self) -> None:
        """Remove every registered handler."""
        self._handlers.clear()
