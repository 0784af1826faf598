# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
aico-autonomy: trust-based delegation engine for an ambient smart home.

For each user and each action domain the engine decides whether an
autonomous action may run outright, must become a confirmable proposal, or
is refused, and it keeps per-domain trust scores current from observed
outcomes.

Quick start::

    from aico_autonomy import AutonomyController, AutonomousAction, DelegationDomain

    controller = AutonomyController()
    controller.initialize_user("alice")

    decision = controller.attempt_action("alice", AutonomousAction(
        domain=DelegationDomain.LIGHTING,
        type="adjust_lights",
        description="Dim the living room for the evening",
        confidence=0.7,
    ))
    print(decision.status)  # DecisionStatus.PENDING_APPROVAL

    controller.approve_proposal(decision.proposal_id)
    print(controller.get_trust_score("alice", DelegationDomain.LIGHTING))
"""
from __future__ import annotations

from aico_autonomy.calibration import CalibrationMonitor, phase_for_trust
from aico_autonomy.config import (
    MODE_LEARNING_RATES,
    AutonomyConfig,
    HistoryLimits,
    TrustDynamics,
    learning_rate_for,
)
from aico_autonomy.controller import AutonomyController
from aico_autonomy.decay import DecayScheduler
from aico_autonomy.decisions import DecisionEngine, effective_level, required_level_for
from aico_autonomy.errors import (
    AutonomyError,
    ConfigurationError,
    DelegationCeilingError,
    HardDeniedError,
    InsufficientAuthorityError,
    UnknownDomainError,
    UnknownUserError,
)
from aico_autonomy.events import (
    ActionExecuted,
    ActionProposed,
    ActionRejected,
    AutonomyEvent,
    CalibrationPhaseChanged,
    DelegationDowngraded,
    DelegationUpgraded,
    EventBus,
    EventKind,
    PermissionDenied,
    PermissionGranted,
    PermissionRequested,
    TrustChanged,
    TrustLowWarning,
    describe_event,
)
from aico_autonomy.interfaces import (
    Clock,
    DeviceExecutor,
    Notifier,
    NullExecutor,
    NullNotifier,
    SystemClock,
)
from aico_autonomy.ledger import TrustLedger, calculate_trust_delta, evaluate_delegation_level
from aico_autonomy.levels import DELEGATION_HIERARCHY, approval_type_for
from aico_autonomy.profiles import (
    AutonomyStore,
    DelegationPreferences,
    DelegationProfile,
    DomainDelegation,
    TrustCalibration,
)
from aico_autonomy.records import (
    ActionDecision,
    ActionImpact,
    ActionOutcome,
    ActionProposal,
    ActionReason,
    ActionTiming,
    AutonomousAction,
    PermissionRequest,
    PermissionResponse,
    Reversibility,
    TrustEvent,
    UserFeedback,
)
from aico_autonomy.types import (
    ApprovalType,
    AutonomyMode,
    CalibrationState,
    DecisionStatus,
    DelegationContext,
    DelegationDomain,
    DelegationLevel,
    FeedbackType,
    LearningPhase,
    PermissionScope,
    TrustOutcome,
)
from aico_autonomy.workflow import PermissionWorkflow, ProposalWorkflow

__version__ = "0.1.0"

__all__ = [
    # Core types
    "DelegationDomain",
    "DelegationLevel",
    "DELEGATION_HIERARCHY",
    "TrustOutcome",
    "FeedbackType",
    "ApprovalType",
    "PermissionScope",
    "AutonomyMode",
    "CalibrationState",
    "LearningPhase",
    "DelegationContext",
    "DecisionStatus",
    "approval_type_for",
    # Configuration
    "AutonomyConfig",
    "TrustDynamics",
    "HistoryLimits",
    "MODE_LEARNING_RATES",
    "learning_rate_for",
    # Controller
    "AutonomyController",
    # Records
    "AutonomousAction",
    "ActionReason",
    "Reversibility",
    "ActionTiming",
    "ActionImpact",
    "ActionOutcome",
    "ActionDecision",
    "ActionProposal",
    "PermissionRequest",
    "PermissionResponse",
    "TrustEvent",
    "UserFeedback",
    # Profiles
    "AutonomyStore",
    "DelegationProfile",
    "DomainDelegation",
    "DelegationPreferences",
    "TrustCalibration",
    # Components
    "DecisionEngine",
    "required_level_for",
    "effective_level",
    "TrustLedger",
    "calculate_trust_delta",
    "evaluate_delegation_level",
    "ProposalWorkflow",
    "PermissionWorkflow",
    "CalibrationMonitor",
    "phase_for_trust",
    "DecayScheduler",
    # Collaborators
    "Clock",
    "SystemClock",
    "Notifier",
    "NullNotifier",
    "DeviceExecutor",
    "NullExecutor",
    # Events
    "EventBus",
    "EventKind",
    "AutonomyEvent",
    "describe_event",
    "TrustChanged",
    "DelegationUpgraded",
    "DelegationDowngraded",
    "ActionProposed",
    "ActionExecuted",
    "ActionRejected",
    "PermissionRequested",
    "PermissionGranted",
    "PermissionDenied",
    "CalibrationPhaseChanged",
    "TrustLowWarning",
    # Errors
    "AutonomyError",
    "UnknownUserError",
    "UnknownDomainError",
    "HardDeniedError",
    "InsufficientAuthorityError",
    "DelegationCeilingError",
    "ConfigurationError",
]
