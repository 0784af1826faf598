# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Records exchanged between the decision engine, the ledger and callers.

Everything here is a pydantic v2 model. Records that describe something
that already happened (trust events, feedback, proposals, decisions) are
frozen. :class:`AutonomousAction` is the one exception: the engine executes
a private copy of the caller's action and stamps ``executed_at`` and
``outcome`` on that copy as the action moves through its lifecycle.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator

from aico_autonomy.types import (
    ApprovalType,
    DecisionStatus,
    DelegationDomain,
    DelegationLevel,
    FeedbackType,
    PermissionScope,
    TrustOutcome,
)


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Return *moment* as an aware datetime, reading a naive value as UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


def new_id(prefix: str) -> str:
    """Return a unique identifier such as ``'trust_3f2a…'``."""
    return f"{prefix}_{uuid.uuid4().hex}"


# ---------------------------------------------------------------------------
# Action description
# ---------------------------------------------------------------------------


class ActionReason(BaseModel, frozen=True):
    """Why the house wants to act."""

    primary: str
    supporting: list[str] = Field(default_factory=list)
    patterns: list[str] = Field(default_factory=list)
    confidence: Annotated[float, Field(ge=0.0, le=1.0)] = 0.5


class Reversibility(BaseModel, frozen=True):
    """
    Whether and how an executed action can be undone.

    Attributes:
        is_reversible: True if the action can be undone at all.
        reverse_window: Seconds after execution during which undo is possible.
        reverse_method: How the undo happens.
        reverse_description: Optional human-readable undo description.
    """

    is_reversible: bool = True
    reverse_window: Annotated[float, Field(ge=0)] = 300.0
    reverse_method: Literal["automatic", "manual", "partial"] = "automatic"
    reverse_description: str | None = None


class ActionTiming(BaseModel, frozen=True):
    """
    When an action was proposed and how long it may wait.

    ``proposed`` is left unset by callers and stamped from the engine clock
    the first time the action is proposed or executed. Naive datetimes are
    read as UTC.
    """

    proposed: datetime | None = None
    deadline: datetime | None = None
    flexibility: Literal["immediate", "soon", "flexible", "scheduled"] = "flexible"

    @field_validator("proposed", "deadline")
    @classmethod
    def _aware(cls, value: datetime | None) -> datetime | None:
        return None if value is None else as_utc(value)


class ActionImpact(BaseModel, frozen=True):
    """
    Who and what an action touches.

    Attributes:
        affected_rooms: Room identifiers.
        affected_devices: Device identifiers.
        affected_users: User identifiers. More than one raises the level
            the action requires.
        energy_impact: Watts (positive = more consumption).
        comfort_impact: Expected effect on comfort.
        financial_impact: Currency amount. Any positive amount requires
            at least a proposal.
    """

    affected_rooms: list[str] = Field(default_factory=list)
    affected_devices: list[str] = Field(default_factory=list)
    affected_users: list[str] = Field(default_factory=list)
    energy_impact: float = 0.0
    comfort_impact: Literal["positive", "neutral", "negative"] = "neutral"
    financial_impact: float | None = None


class ActionOutcome(BaseModel, frozen=True):
    """What happened after an action ran, including the user's reaction."""

    success: bool
    actual_result: str = ""
    user_reaction: TrustOutcome | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class AutonomousAction(BaseModel, validate_assignment=True):
    """
    An action the house would like to take on a user's behalf.

    ``type`` is a free string (``'adjust_temperature'``, ``'unlock_door'``)
    so that preference lists can name action types the engine has no
    table entry for.
    """

    id: str = Field(default_factory=lambda: new_id("action"))
    domain: DelegationDomain
    type: str = Field(..., min_length=1)
    description: str
    reason: ActionReason | None = None
    confidence: Annotated[float, Field(ge=0.0, le=1.0)]
    reversibility: Reversibility = Field(default_factory=Reversibility)
    timing: ActionTiming = Field(default_factory=ActionTiming)
    impact: ActionImpact = Field(default_factory=ActionImpact)
    executed_at: datetime | None = None
    outcome: ActionOutcome | None = None

    def engine_copy(self, now: datetime) -> AutonomousAction:
        """Return a deep copy whose ``timing.proposed`` is *now* unless already set."""
        copy = self.model_copy(deep=True)
        if copy.timing.proposed is None:
            copy.timing = copy.timing.model_copy(update={"proposed": now})
        return copy


# ---------------------------------------------------------------------------
# Trust events
# ---------------------------------------------------------------------------


class UserFeedback(BaseModel, frozen=True):
    type: FeedbackType
    explicit: bool = True
    message: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)


class TrustEvent(BaseModel, frozen=True):
    """
    An immutable entry in a profile's trust history.

    Attributes:
        id: Unique event identifier.
        timestamp: UTC time the event was recorded.
        user_id: The profile the event applies to.
        domain: The domain whose score changed.
        action_id: The action the outcome refers to.
        action_type: Type of that action, kept for history queries.
        outcome: The observed outcome kind.
        trust_delta: The signed change applied to the domain score.
        score_after: The domain score after clamping.
        user_feedback: Optional feedback that accompanied the outcome.
    """

    id: str = Field(default_factory=lambda: new_id("trust"))
    timestamp: datetime
    user_id: str
    domain: DelegationDomain
    action_id: str
    action_type: str
    outcome: TrustOutcome
    trust_delta: float
    score_after: float
    user_feedback: UserFeedback | None = None


# ---------------------------------------------------------------------------
# Proposals
# ---------------------------------------------------------------------------


class ProposalPresentation(BaseModel, frozen=True):
    """Data handed to presenters; rendering is their business."""

    headline: str
    explanation: str
    voice_script: str | None = None
    ambient_signal: str | None = None


class AlternativeAction(BaseModel, frozen=True):
    action: AutonomousAction
    reason: str
    tradeoffs: list[str] = Field(default_factory=list)


class ActionProposal(BaseModel, frozen=True):
    """
    A pending action awaiting a lightweight approval gesture.

    Attributes:
        id: Identifier returned to the caller of attempt_action().
        user_id: The user who must approve.
        action: The action that will run on approval.
        presentation: Headline, explanation and signal for presenters.
        required_approval: Gesture required to approve.
        created_at: UTC creation time.
        expires_at: UTC time after which the proposal can no longer be
            approved.
        alternatives: Gentler variants the user could pick instead.
    """

    id: str = Field(default_factory=lambda: new_id("proposal"))
    user_id: str
    action: AutonomousAction
    presentation: ProposalPresentation
    required_approval: ApprovalType
    created_at: datetime
    expires_at: datetime
    alternatives: list[AlternativeAction] = Field(default_factory=list)

    def is_expired(self, now: datetime) -> bool:
        """Return True if the proposal has passed its expiry time."""
        return now >= self.expires_at


# ---------------------------------------------------------------------------
# Permission requests
# ---------------------------------------------------------------------------


class PermissionResponse(BaseModel, frozen=True):
    granted: bool
    scope: PermissionScope
    conditions: list[str] = Field(default_factory=list)
    responded_at: datetime


class PermissionRequest(BaseModel, frozen=True):
    """
    A time-boxed ask to raise a domain's delegation level.

    ``action`` is set when the request was made on behalf of one concrete
    action; granting a ``this_action`` request then runs that action once.
    A request without an action is a plain level elevation.
    """

    id: str = Field(default_factory=lambda: new_id("perm"))
    user_id: str
    domain: DelegationDomain
    action: AutonomousAction | None = None
    requested_level: DelegationLevel
    current_level: DelegationLevel
    reason: str
    permanent: bool = False
    scope: PermissionScope
    requested_at: datetime
    expires_at: datetime
    response: PermissionResponse | None = None

    def is_expired(self, now: datetime) -> bool:
        """Return True if the request has passed its expiry time."""
        return now >= self.expires_at


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


class ActionDecision(BaseModel, frozen=True):
    """
    Result of submitting an action to the decision engine.

    Attributes:
        status: What the engine did with the action.
        executed: True only when the action was authorised and handed off.
        reason: Human-readable explanation.
        action_id: The submitted action's identifier.
        proposal_id: Set when a proposal was created.
        required_level: Level the action needed, when it was computed.
        current_level: Level the domain held when the decision was made.
    """

    status: DecisionStatus
    executed: bool
    reason: str
    action_id: str
    proposal_id: str | None = None
    required_level: DelegationLevel | None = None
    current_level: DelegationLevel | None = None
