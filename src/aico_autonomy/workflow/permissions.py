# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Time-boxed requests to raise a domain's delegation level.

Granting a permanent request is an explicit human override: the domain's
level is set directly and the gradual escalation policy is bypassed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from aico_autonomy.errors import DelegationCeilingError
from aico_autonomy.events import (
    EventBus,
    PermissionDenied,
    PermissionGranted,
    PermissionRequested,
)
from aico_autonomy.execution import ActionDispatcher
from aico_autonomy.levels import cap_level
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import (
    AutonomousAction,
    PermissionRequest,
    PermissionResponse,
    as_utc,
)
from aico_autonomy.types import DelegationDomain, DelegationLevel, PermissionScope

logger = logging.getLogger("aico.autonomy.workflow")


class PermissionWorkflow:
    """Stores permission requests and applies the user's answers."""

    def __init__(
        self,
        store: AutonomyStore,
        dispatcher: ActionDispatcher,
        bus: EventBus,
    ) -> None:
        self._store = store
        self._dispatcher = dispatcher
        self._bus = bus

    def request_permission(
        self,
        user_id: str,
        domain: DelegationDomain,
        requested_level: DelegationLevel,
        reason: str,
        permanent: bool = False,
        action: AutonomousAction | None = None,
    ) -> PermissionRequest:
        """
        Ask the user to raise *domain* to *requested_level*.

        A permanent request is domain-scoped; otherwise it covers one
        action. The request expires after ``config.permission_ttl_seconds``.

        Args:
            user_id: The user who must answer.
            domain: The domain to elevate.
            requested_level: The level asked for.
            reason: Human-readable justification shown to the user.
            permanent: True to ask for a lasting domain-level change.
            action: The concrete action a one-shot grant would run.

        Returns:
            The stored :class:`PermissionRequest`.

        Raises:
            UnknownUserError: If the user has no profile.
            UnknownDomainError: If the profile lacks *domain*.
            DelegationCeilingError: If *requested_level* exceeds the
                domain ceiling.
            ValueError: If *requested_level* is not above the current
                level, or *action* belongs to another domain.
        """
        store = self._store
        with store.lock:
            delegation = store.domain(user_id, domain)
            if requested_level > delegation.max_level:
                raise DelegationCeilingError(domain, requested_level, delegation.max_level)
            if requested_level <= delegation.current_level:
                raise ValueError(
                    f"requested_level {requested_level.slug!r} must be above the current "
                    f"level {delegation.current_level.slug!r}."
                )
            if action is not None and action.domain != domain:
                raise ValueError(
                    f"action domain {action.domain.value!r} does not match {domain.value!r}."
                )

            now = store.clock.now()
            request = PermissionRequest(
                user_id=user_id,
                domain=domain,
                action=action.model_copy(deep=True) if action is not None else None,
                requested_level=requested_level,
                current_level=delegation.current_level,
                reason=reason,
                permanent=permanent,
                scope=PermissionScope.DOMAIN if permanent else PermissionScope.THIS_ACTION,
                requested_at=now,
                expires_at=now + timedelta(seconds=store.config.permission_ttl_seconds),
            )
            store.add_permission(request)

        logger.info(
            "Permission requested",
            extra={
                "user_id": user_id,
                "request_id": request.id,
                "domain": domain.value,
                "requested_level": requested_level.slug,
                "permanent": permanent,
            },
        )
        self._bus.emit(PermissionRequested(request=request))
        return request

    def respond_to_permission(
        self,
        request_id: str,
        granted: bool,
        scope: PermissionScope | None = None,
        conditions: list[str] | None = None,
    ) -> PermissionRequest | None:
        """
        Apply the user's answer to a pending request.

        Granting a permanent, domain-scoped request sets the domain's
        ``current_level`` to the requested level (capped at the ceiling).
        Granting a ``this_action`` request that carries an action executes
        that action once at the requested level.

        Returns:
            The resolved request with its response attached, or None if the
            request is unknown, already answered or expired.
        """
        store = self._store
        with store.lock:
            request = store.pop_permission(request_id)
            if request is None:
                return None
            now = store.clock.now()
            if request.is_expired(now):
                self._announce_expiry(request)
                return None

            effective_scope = scope or request.scope
            resolved = request.model_copy(
                update={
                    "response": PermissionResponse(
                        granted=granted,
                        scope=effective_scope,
                        conditions=list(conditions or []),
                        responded_at=now,
                    )
                }
            )

            if not granted:
                logger.info(
                    "Permission denied",
                    extra={"user_id": request.user_id, "request_id": request_id},
                )
                self._bus.emit(PermissionDenied(request_id=request_id))
                return resolved

            logger.info(
                "Permission granted",
                extra={
                    "user_id": request.user_id,
                    "request_id": request_id,
                    "scope": effective_scope.value,
                },
            )
            self._bus.emit(PermissionGranted(request_id=request_id))

            if request.permanent and effective_scope == PermissionScope.DOMAIN:
                delegation = store.domain(request.user_id, request.domain)
                delegation.current_level = cap_level(request.requested_level, delegation.max_level)
                delegation.last_adjusted = now
                logger.info(
                    "Delegation level set by permission grant",
                    extra={
                        "user_id": request.user_id,
                        "domain": request.domain.value,
                        "level": delegation.current_level.slug,
                    },
                )
            elif effective_scope == PermissionScope.THIS_ACTION and request.action is not None:
                self._dispatcher.execute(request.user_id, request.action, request.requested_level)

            return resolved

    def expire_pending(self, now: datetime | None = None) -> list[str]:
        """
        Remove every permission request past its expiry time.

        Each expired request is announced as ``permission:denied``.

        Returns:
            IDs of the requests that expired.
        """
        store = self._store
        with store.lock:
            moment = as_utc(now) if now is not None else store.clock.now()
            expired = [r for r in store.pending_permissions() if r.is_expired(moment)]
            for request in expired:
                store.pop_permission(request.id)
                self._announce_expiry(request)
        return [request.id for request in expired]

    def _announce_expiry(self, request: PermissionRequest) -> None:
        logger.info(
            "Permission request expired",
            extra={"user_id": request.user_id, "request_id": request.id},
        )
        self._bus.emit(PermissionDenied(request_id=request.id))
