# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Closed enumerations shared across the autonomy engine.

Every table in the package (base trust deltas, approval types, ambient
signals, learning rates) is keyed by one of these enums so lookups stay
exhaustive and typos surface as errors rather than silent defaults.
"""

from __future__ import annotations

from enum import Enum, IntEnum


class DelegationDomain(str, Enum):
    """Independent categories of home-control actions."""

    CLIMATE = "climate"
    LIGHTING = "lighting"
    SECURITY = "security"
    ENERGY = "energy"
    ENTERTAINMENT = "entertainment"
    COMMUNICATION = "communication"
    SCHEDULING = "scheduling"
    PURCHASES = "purchases"
    HEALTH = "health"
    SOCIAL = "social"


class DelegationLevel(IntEnum):
    """
    Six-level delegation hierarchy, least to most autonomous.

    The integer value is the position in the hierarchy, so levels compare
    directly: ``DelegationLevel.PROPOSE > DelegationLevel.SUGGEST``.
    """

    INFORM = 0
    """House only provides information."""

    SUGGEST = 1
    """House makes suggestions; the user decides."""

    PROPOSE = 2
    """House proposes actions with easy approval."""

    AUTO_REVERSIBLE = 3
    """House acts but the user can easily undo."""

    AUTO_NOTIFY = 4
    """House acts and notifies."""

    AUTO_SILENT = 5
    """House acts without notification."""

    @property
    def slug(self) -> str:
        """Wire name of the level, e.g. ``'auto_reversible'``."""
        return self.name.lower()

    @classmethod
    def from_slug(cls, slug: str) -> DelegationLevel:
        """
        Parse a wire name such as ``'propose'`` into a level.

        Raises:
            ValueError: If *slug* does not name a level.
        """
        try:
            return cls[slug.upper()]
        except KeyError:
            valid = [level.slug for level in cls]
            raise ValueError(
                f"'{slug}' is not a delegation level. Valid values: {valid}."
            ) from None


class TrustOutcome(str, Enum):
    """Observed outcome of an action, as judged by the user."""

    CORRECT_PREDICTION = "correct_prediction"
    APPRECIATED_ACTION = "appreciated_action"
    NEUTRAL = "neutral"
    MINOR_CORRECTION = "minor_correction"
    SIGNIFICANT_CORRECTION = "significant_correction"
    REJECTED = "rejected"
    COMPLAINED = "complained"

    @property
    def is_success(self) -> bool:
        """True for outcomes that count towards a domain's success rate."""
        return self in _SUCCESS_OUTCOMES

    @property
    def is_correction(self) -> bool:
        """True for outcomes where the user had to fix what the house did."""
        return self in _CORRECTION_OUTCOMES


_SUCCESS_OUTCOMES = frozenset(
    {
        TrustOutcome.CORRECT_PREDICTION,
        TrustOutcome.APPRECIATED_ACTION,
        TrustOutcome.NEUTRAL,
    }
)

_CORRECTION_OUTCOMES = frozenset(
    {
        TrustOutcome.MINOR_CORRECTION,
        TrustOutcome.SIGNIFICANT_CORRECTION,
        TrustOutcome.COMPLAINED,
    }
)


class FeedbackType(str, Enum):
    """Gesture the user made when giving feedback."""

    THUMBS_UP = "thumbs_up"
    THUMBS_DOWN = "thumbs_down"
    UNDO = "undo"
    MODIFY = "modify"
    COMPLAIN = "complain"
    PRAISE = "praise"


class ApprovalType(str, Enum):
    """Gesture required before a proposed action runs."""

    NONE = "none"
    CANCELABLE = "cancelable"
    ONE_TAP = "one_tap"
    CONFIRMATION = "confirmation"
    BIOMETRIC = "biometric"
    MULTI_USER = "multi_user"


class PermissionScope(str, Enum):
    """How far a granted permission reaches."""

    THIS_ACTION = "this_action"
    DOMAIN = "domain"


class AutonomyMode(str, Enum):
    """Household-wide assertiveness setting; selects the learning rate."""

    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    PROACTIVE = "proactive"
    GUEST_MODE = "guest_mode"
    VACATION_MODE = "vacation_mode"


class CalibrationState(str, Enum):
    INITIAL = "initial"
    ESTABLISHED = "established"
    RECALIBRATING = "recalibrating"


class LearningPhase(str, Enum):
    """Coarse per-user trust bucket, ordered from most to least cautious."""

    OBSERVATION = "observation"
    SUGGESTION = "suggestion"
    SUPERVISED = "supervised"
    AUTONOMOUS = "autonomous"


class DelegationContext(str, Enum):
    """Situations for which a user can pre-authorise different levels."""

    SLEEP = "sleep"
    AWAY = "away"
    BUSY = "busy"


class DecisionStatus(str, Enum):
    """Result category of :meth:`DecisionEngine.attempt_action`."""

    EXECUTED = "executed"
    PENDING_APPROVAL = "pending_approval"
    HARD_DENIED = "hard_denied"
    INSUFFICIENT_AUTHORITY = "insufficient_authority"


class ComfortPriority(str, Enum):
    EFFICIENCY = "efficiency"
    BALANCED = "balanced"
    MAXIMUM_COMFORT = "maximum_comfort"
