# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

import logging

from aico_autonomy.errors import HardDeniedError, InsufficientAuthorityError
from aico_autonomy.execution import ActionDispatcher
from aico_autonomy.levels import (
    approval_type_for,
    cap_level,
    describe_comparison,
    is_level_sufficient,
)
from aico_autonomy.profiles.models import DelegationPreferences, DomainDelegation
from aico_autonomy.profiles.store import AutonomyStore
from aico_autonomy.records import ActionDecision, AutonomousAction
from aico_autonomy.types import (
    ApprovalType,
    DecisionStatus,
    DelegationContext,
    DelegationLevel,
)
from aico_autonomy.workflow.proposals import ProposalWorkflow

logger = logging.getLogger("aico.autonomy.decisions")

LOW_CONFIDENCE = 0.5
HIGH_CONFIDENCE = 0.9


def required_level_for(action: AutonomousAction) -> DelegationLevel:
    """
    Return the lowest delegation level that may run *action* unattended.

    Rules are checked in order; the first match wins:

    1. Any positive financial impact requires PROPOSE.
    2. Irreversible actions require PROPOSE.
    3. Confidence below 0.5 requires only SUGGEST.
    4. More than one affected user requires PROPOSE.
    5. Confidence above 0.9 on a reversible action requires AUTO_REVERSIBLE.
    6. Anything else requires PROPOSE.
    """
    impact = action.impact
    if impact.financial_impact is not None and impact.financial_impact > 0:
        return DelegationLevel.PROPOSE
    if not action.reversibility.is_reversible:
        return DelegationLevel.PROPOSE
    if action.confidence < LOW_CONFIDENCE:
        return DelegationLevel.SUGGEST
    if len(impact.affected_users) > 1:
        return DelegationLevel.PROPOSE
    if action.confidence > HIGH_CONFIDENCE and action.reversibility.is_reversible:
        return DelegationLevel.AUTO_REVERSIBLE
    return DelegationLevel.PROPOSE


def effective_level(
    delegation: DomainDelegation,
    preferences: DelegationPreferences,
    context: DelegationContext | None = None,
) -> DelegationLevel:
    """
    Return the level a decision runs at.

    Without a context this is the domain's ``current_level``. With one, a
    user-defined override for that context and domain replaces it, capped
    at the domain ceiling.
    """
    if context is None:
        return delegation.current_level
    override = preferences.context_levels.get(context, {}).get(delegation.domain)
    if override is None:
        return delegation.current_level
    return cap_level(override, delegation.max_level)


class DecisionEngine:
    """
    Decides whether an action executes, becomes a proposal, or is refused.

    Evaluation is a fixed priority chain:

    1. Profile and domain lookup (misses raise; nothing is attempted).
    2. ``never_automate`` hard gate: refused, trust-neutral.
    3. ``always_ask_for`` hard gate: confirmation proposal, no level math.
    4. Required level from the action's impact, reversibility and confidence.
    5. Effective level at or above required: execute.
    6. Required level is SUGGEST or PROPOSE: create a proposal.
    7. Otherwise: insufficient authority.

    Use :meth:`attempt_action` when refusals are ordinary outcomes, or
    :meth:`require_action` when the call site wants an exception instead.
    """

    def __init__(
        self,
        store: AutonomyStore,
        proposals: ProposalWorkflow,
        dispatcher: ActionDispatcher,
    ) -> None:
        self._store = store
        self._proposals = proposals
        self._dispatcher = dispatcher

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def attempt_action(
        self,
        user_id: str,
        action: AutonomousAction,
        context: DelegationContext | None = None,
    ) -> ActionDecision:
        """
        Run *action* through the decision chain for *user_id*.

        Args:
            user_id: The user on whose behalf the action would run.
            action: The candidate action. Never mutated; an executed or
                proposed action is a private copy.
            context: Optional situation (sleep, away, busy) whose
                preference overrides apply to this decision only.

        Returns:
            An :class:`~aico_autonomy.records.ActionDecision`.

        Raises:
            UnknownUserError: If the user has no profile.
            UnknownDomainError: If the profile lacks the action's domain.
        """
        store = self._store
        with store.lock:
            # --- Step 1: Lookup ---
            profile = store.profile(user_id)
            delegation = store.domain(user_id, action.domain)
            preferences = profile.preferences

            # --- Step 2: Never automate ---
            if action.type in preferences.never_automate:
                return self._log(
                    user_id,
                    action,
                    ActionDecision(
                        status=DecisionStatus.HARD_DENIED,
                        executed=False,
                        reason=f"Action type '{action.type}' is never automated.",
                        action_id=action.id,
                        current_level=delegation.current_level,
                    ),
                )

            # --- Step 3: Always ask ---
            if action.type in preferences.always_ask_for:
                proposal = self._proposals.create_proposal(
                    user_id, action, ApprovalType.CONFIRMATION
                )
                return self._log(
                    user_id,
                    action,
                    ActionDecision(
                        status=DecisionStatus.PENDING_APPROVAL,
                        executed=False,
                        reason=f"Action type '{action.type}' always requires confirmation.",
                        action_id=action.id,
                        proposal_id=proposal.id,
                        current_level=delegation.current_level,
                    ),
                )

            # --- Step 4: Required level ---
            required = required_level_for(action)
            current = effective_level(delegation, preferences, context)

            # --- Step 5: Sufficient delegation ---
            if is_level_sufficient(current, required):
                executed = self._dispatcher.execute(user_id, action, current)
                return self._log(
                    user_id,
                    executed,
                    ActionDecision(
                        status=DecisionStatus.EXECUTED,
                        executed=True,
                        reason=f"Delegated: {describe_comparison(current, required)}.",
                        action_id=executed.id,
                        required_level=required,
                        current_level=current,
                    ),
                )

            # --- Step 6: Proposal ---
            if required in (DelegationLevel.SUGGEST, DelegationLevel.PROPOSE):
                proposal = self._proposals.create_proposal(
                    user_id, action, approval_type_for(required)
                )
                return self._log(
                    user_id,
                    action,
                    ActionDecision(
                        status=DecisionStatus.PENDING_APPROVAL,
                        executed=False,
                        reason=f"Proposal created: {describe_comparison(current, required)}.",
                        action_id=action.id,
                        proposal_id=proposal.id,
                        required_level=required,
                        current_level=current,
                    ),
                )

            # --- Step 7: Insufficient authority ---
            return self._log(
                user_id,
                action,
                ActionDecision(
                    status=DecisionStatus.INSUFFICIENT_AUTHORITY,
                    executed=False,
                    reason=f"Insufficient authority: {describe_comparison(current, required)}.",
                    action_id=action.id,
                    required_level=required,
                    current_level=current,
                ),
            )

    def require_action(
        self,
        user_id: str,
        action: AutonomousAction,
        context: DelegationContext | None = None,
    ) -> ActionDecision:
        """
        Like :meth:`attempt_action`, but raise on refusal.

        A pending proposal is not a refusal and is returned normally.

        Raises:
            HardDeniedError: If the action type is never automated.
            InsufficientAuthorityError: If the delegation level is too low
                and no proposal could be created.
        """
        decision = self.attempt_action(user_id, action, context)
        if decision.status == DecisionStatus.HARD_DENIED:
            raise HardDeniedError(user_id, action.type)
        if decision.status == DecisionStatus.INSUFFICIENT_AUTHORITY:
            if decision.required_level is None or decision.current_level is None:
                raise AssertionError("insufficient_authority decision without levels")
            raise InsufficientAuthorityError(
                user_id,
                action.domain,
                decision.required_level,
                decision.current_level,
            )
        return decision

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _log(user_id: str, action: AutonomousAction, decision: ActionDecision) -> ActionDecision:
        logger.info(
            "Action decision",
            extra={
                "user_id": user_id,
                "action_id": action.id,
                "action_type": action.type,
                "domain": action.domain.value,
                "status": decision.status.value,
            },
        )
        return decision
