# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
"""
Basic autonomy example.

Walks one household member through the delegation lifecycle: a proposal
that needs approval, trust earned through approvals, an automatic upgrade,
an undo, and a permission request.

Run with:
    python examples/basic_autonomy.py
"""
from __future__ import annotations

import logging

from aico_autonomy import (
    ActionReason,
    AutonomousAction,
    AutonomyConfig,
    AutonomyController,
    DelegationDomain,
    DelegationLevel,
    EventKind,
    TrustDynamics,
    TrustOutcome,
    describe_event,
)


def dim_lights(confidence: float) -> AutonomousAction:
    return AutonomousAction(
        domain=DelegationDomain.LIGHTING,
        type="adjust_lights",
        description="Dim the living room lights to 40%",
        reason=ActionReason(primary="Movie night pattern detected"),
        confidence=confidence,
    )


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    # ------------------------------------------------------------------ #
    # 1. Build the controller and watch delegation changes
    # ------------------------------------------------------------------ #
    config = AutonomyConfig(dynamics=TrustDynamics(growth_rate=1.0))
    controller = AutonomyController(config=config)
    controller.subscribe(EventKind.DELEGATION_UPGRADED, lambda e: print(f"  ** {describe_event(e)}"))
    controller.initialize_user("alice")

    # ------------------------------------------------------------------ #
    # 2. A first action needs approval
    # ------------------------------------------------------------------ #
    print("=== Example 1: Proposal ===")
    decision = controller.attempt_action("alice", dim_lights(0.7))
    print(f"  status: {decision.status.value}")
    print(f"  reason: {decision.reason}")
    if decision.proposal_id:
        proposal = controller.get_pending_proposals("alice")[0]
        print(f"  headline: {proposal.presentation.headline}")
        controller.approve_proposal(decision.proposal_id)

    # ------------------------------------------------------------------ #
    # 3. Sustained approval earns one step up the hierarchy
    # ------------------------------------------------------------------ #
    print()
    print("=== Example 2: Earning trust ===")
    for _ in range(15):
        controller.record_trust_event("alice", dim_lights(0.7), TrustOutcome.APPRECIATED_ACTION)
    level = controller.get_delegation_level("alice", DelegationDomain.LIGHTING)
    print(f"  lighting trust: {controller.get_trust_score('alice', DelegationDomain.LIGHTING):.1f}")
    print(f"  lighting level: {level.slug}")

    decision = controller.attempt_action("alice", dim_lights(0.7))
    print(f"  next action: {decision.status.value}")

    # ------------------------------------------------------------------ #
    # 4. Undo
    # ------------------------------------------------------------------ #
    print()
    print("=== Example 3: Undo ===")
    event = controller.undo_action(decision.action_id)
    if event is not None:
        print(f"  recorded {event.outcome.value} ({event.trust_delta:+.1f})")

    # ------------------------------------------------------------------ #
    # 5. Permission request for a lasting change
    # ------------------------------------------------------------------ #
    print()
    print("=== Example 4: Permission ===")
    request = controller.request_permission(
        "alice",
        DelegationDomain.CLIMATE,
        DelegationLevel.AUTO_NOTIFY,
        "You have accepted every temperature change this month",
        permanent=True,
    )
    controller.respond_to_permission(request.id, granted=True)
    climate = controller.get_delegation_level("alice", DelegationDomain.CLIMATE)
    print(f"  climate level: {climate.slug}")

    print()
    print(f"  learning phase: {controller.get_calibration('alice').learning_phase.value}")


if __name__ == "__main__":
    main()
