# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
The single owned store for all mutable autonomy state.

Profiles, calibrations, pending proposals, pending permission requests,
the global action history and the autonomy mode all live here. Every
component that changes state receives the same store instance and takes
:attr:`AutonomyStore.lock` around its mutation, so the decay thread and
synchronous callers never interleave.
"""

from __future__ import annotations

import collections
import threading
from collections.abc import Iterator

from aico_autonomy.config import AutonomyConfig, learning_rate_for
from aico_autonomy.errors import UnknownDomainError, UnknownUserError
from aico_autonomy.interfaces import Clock, SystemClock
from aico_autonomy.levels import default_ceiling_for, default_level_for
from aico_autonomy.profiles.models import (
    DelegationProfile,
    DomainDelegation,
    TrustCalibration,
)
from aico_autonomy.records import ActionProposal, AutonomousAction, PermissionRequest
from aico_autonomy.types import AutonomyMode, DelegationDomain


def validate_user_id(user_id: object) -> str:
    """
    Validate that *user_id* is a non-empty string.

    Raises:
        TypeError:  If user_id is not a string.
        ValueError: If user_id is empty or whitespace-only.
    """
    if not isinstance(user_id, str):
        raise TypeError(f"user_id must be a string, got {type(user_id).__name__!r}.")
    if not user_id.strip():
        raise ValueError("user_id must be a non-empty string.")
    return user_id


class AutonomyStore:
    """
    In-memory owner of every profile and pending workflow item.

    Readers that hand data to callers should return deep copies; the live
    records returned by :meth:`profile` and :meth:`domain` are for the
    engine's own components, which must hold :attr:`lock` while using them.
    """

    def __init__(
        self,
        config: AutonomyConfig | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or AutonomyConfig()
        self.clock: Clock = clock or SystemClock()
        self.lock = threading.RLock()
        self.mode: AutonomyMode = self.config.initial_mode

        self._profiles: dict[str, DelegationProfile] = {}
        self._calibrations: dict[str, TrustCalibration] = {}
        # Insertion-ordered, so pending lists come back oldest first.
        self._proposals: dict[str, ActionProposal] = {}
        self._permissions: dict[str, PermissionRequest] = {}
        self._recent: collections.deque[tuple[str, AutonomousAction]] = collections.deque(
            maxlen=self.config.history.global_actions
        )
        # Ordered so the oldest entries can be dropped once history rolls over.
        self._undone: collections.OrderedDict[str, None] = collections.OrderedDict()

    @property
    def learning_rate(self) -> float:
        """Learning rate of the current autonomy mode."""
        return learning_rate_for(self.mode)

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def create_profile(self, user_id: str) -> tuple[DelegationProfile, bool]:
        """
        Create a profile with conservative defaults unless one exists.

        Returns:
            ``(profile, created)`` where *created* is False if the user
            already had a profile.
        """
        validate_user_id(user_id)
        with self.lock:
            existing = self._profiles.get(user_id)
            if existing is not None:
                return existing, False

            now = self.clock.now()
            initial = self.config.initial_trust
            domains = {
                domain: DomainDelegation(
                    domain=domain,
                    current_level=default_level_for(domain),
                    max_level=default_ceiling_for(domain),
                    trust_score=initial,
                    last_adjusted=now,
                )
                for domain in DelegationDomain
            }
            profile = DelegationProfile(
                user_id=user_id,
                domains=domains,
                global_trust_level=initial,
            )
            self._profiles[user_id] = profile
            self._calibrations[user_id] = TrustCalibration(user_id=user_id)
            return profile, True

    def has_profile(self, user_id: str) -> bool:
        return user_id in self._profiles

    def profile(self, user_id: str) -> DelegationProfile:
        """
        Return the live profile for *user_id*.

        Raises:
            UnknownUserError: If the user has no profile.
        """
        profile = self._profiles.get(user_id)
        if profile is None:
            raise UnknownUserError(user_id)
        return profile

    def domain(self, user_id: str, domain: DelegationDomain) -> DomainDelegation:
        """
        Return the live delegation entry for (*user_id*, *domain*).

        Raises:
            UnknownUserError: If the user has no profile.
            UnknownDomainError: If the profile has no entry for *domain*.
        """
        delegation = self.profile(user_id).domains.get(domain)
        if delegation is None:
            raise UnknownDomainError(user_id, domain)
        return delegation

    def profiles(self) -> Iterator[DelegationProfile]:
        """Iterate over live profiles. Hold :attr:`lock` while iterating."""
        return iter(list(self._profiles.values()))

    def calibration(self, user_id: str) -> TrustCalibration:
        """
        Return the live calibration for *user_id*.

        Raises:
            UnknownUserError: If the user has no profile.
        """
        calibration = self._calibrations.get(user_id)
        if calibration is None:
            raise UnknownUserError(user_id)
        return calibration

    # ------------------------------------------------------------------
    # Action histories
    # ------------------------------------------------------------------

    def track_domain_action(self, delegation: DomainDelegation, action: AutonomousAction) -> None:
        """Append *action* to the domain history unless it is already there."""
        if any(existing.id == action.id for existing in delegation.recent_actions):
            return
        delegation.recent_actions.append(action)
        excess = len(delegation.recent_actions) - self.config.history.domain_actions
        if excess > 0:
            del delegation.recent_actions[:excess]

    def record_execution(self, user_id: str, action: AutonomousAction) -> None:
        """Add an executed action to both the domain and the global history."""
        delegation = self.domain(user_id, action.domain)
        self.track_domain_action(delegation, action)
        self._recent.append((user_id, action))

    def find_executed(self, action_id: str) -> tuple[str, AutonomousAction] | None:
        """Return ``(user_id, action)`` for an executed action still in history."""
        for user_id, action in reversed(self._recent):
            if action.id == action_id:
                return user_id, action
        return None

    def recent_actions(self, user_id: str | None = None) -> list[AutonomousAction]:
        """Executed actions, oldest first, optionally for one user."""
        return [
            action
            for owner, action in self._recent
            if user_id is None or owner == user_id
        ]

    def mark_undone(self, action_id: str) -> bool:
        """Remember that *action_id* was undone; False if it already was."""
        if action_id in self._undone:
            return False
        self._undone[action_id] = None
        while len(self._undone) > self.config.history.global_actions:
            self._undone.popitem(last=False)
        return True

    # ------------------------------------------------------------------
    # Pending proposals
    # ------------------------------------------------------------------

    def add_proposal(self, proposal: ActionProposal) -> None:
        self._proposals[proposal.id] = proposal

    def get_proposal(self, proposal_id: str) -> ActionProposal | None:
        return self._proposals.get(proposal_id)

    def pop_proposal(self, proposal_id: str) -> ActionProposal | None:
        return self._proposals.pop(proposal_id, None)

    def pending_proposals(self, user_id: str | None = None) -> list[ActionProposal]:
        return [
            proposal
            for proposal in self._proposals.values()
            if user_id is None or proposal.user_id == user_id
        ]

    # ------------------------------------------------------------------
    # Pending permission requests
    # ------------------------------------------------------------------

    def add_permission(self, request: PermissionRequest) -> None:
        self._permissions[request.id] = request

    def pop_permission(self, request_id: str) -> PermissionRequest | None:
        return self._permissions.pop(request_id, None)

    def pending_permissions(self, user_id: str | None = None) -> list[PermissionRequest]:
        return [
            request
            for request in self._permissions.values()
            if user_id is None or request.user_id == user_id
        ]
