# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aico_autonomy.types import DelegationDomain, DelegationLevel


class AutonomyError(Exception):
    """Base class for all aico-autonomy errors."""

    def __init__(self, message: str, code: str = "AUTONOMY_ERROR") -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class UnknownUserError(AutonomyError):
    """Raised when no delegation profile exists for a user."""

    def __init__(self, user_id: str) -> None:
        super().__init__(
            f"No delegation profile for user '{user_id}'. "
            "Create one first with initialize_user().",
            code="UNKNOWN_USER",
        )
        self.user_id = user_id


class UnknownDomainError(AutonomyError):
    """Raised when a profile has no delegation entry for a domain."""

    def __init__(self, user_id: str, domain: DelegationDomain | str) -> None:
        domain_name = domain.value if isinstance(domain, DelegationDomain) else domain
        super().__init__(
            f"User '{user_id}' has no delegation for domain '{domain_name}'.",
            code="UNKNOWN_DOMAIN",
        )
        self.user_id = user_id
        self.domain = domain


class HardDeniedError(AutonomyError):
    """
    Raised by require_action() when an action type is on the user's
    never-automate list. The refusal is permanent and trust-neutral.

    Attributes:
        user_id: The user whose preferences refused the action.
        action_type: The refused action type.
    """

    def __init__(self, user_id: str, action_type: str) -> None:
        super().__init__(
            f"Action type '{action_type}' is never automated for user '{user_id}'.",
            code="HARD_DENIED",
        )
        self.user_id = user_id
        self.action_type = action_type


class InsufficientAuthorityError(AutonomyError):
    """
    Raised by require_action() when the domain's delegation level is below
    the level the action needs and no proposal can stand in for it.

    Attributes:
        user_id: The user whose delegation was evaluated.
        domain: The domain of the action.
        required_level: The level the action needs.
        current_level: The level the domain currently holds.
    """

    def __init__(
        self,
        user_id: str,
        domain: DelegationDomain,
        required_level: DelegationLevel,
        current_level: DelegationLevel,
    ) -> None:
        super().__init__(
            f"User '{user_id}' delegates '{domain.value}' at "
            f"{current_level.slug} but the action requires {required_level.slug}.",
            code="INSUFFICIENT_AUTHORITY",
        )
        self.user_id = user_id
        self.domain = domain
        self.required_level = required_level
        self.current_level = current_level


class DelegationCeilingError(AutonomyError):
    """Raised when a requested level lies above the domain's ceiling."""

    def __init__(
        self,
        domain: DelegationDomain,
        requested_level: DelegationLevel,
        max_level: DelegationLevel,
    ) -> None:
        super().__init__(
            f"Domain '{domain.value}' cannot exceed {max_level.slug}; "
            f"{requested_level.slug} was requested.",
            code="DELEGATION_CEILING",
        )
        self.domain = domain
        self.requested_level = requested_level
        self.max_level = max_level


class ConfigurationError(AutonomyError):
    """Raised when the controller is misconfigured or misused."""

    def __init__(self, message: str) -> None:
        super().__init__(message, code="CONFIGURATION_ERROR")
