# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aico_autonomy.ledger.dynamics import (
    BASE_TRUST_DELTAS,
    calculate_trust_delta,
    clamp_score,
    compute_success_rate,
    decayed_score,
    mean_trust,
)
from aico_autonomy.ledger.escalation import EscalationResult, evaluate_delegation_level
from aico_autonomy.ledger.ledger import TrustLedger, refresh_global_trust

__all__ = [
    "TrustLedger",
    "refresh_global_trust",
    "BASE_TRUST_DELTAS",
    "calculate_trust_delta",
    "clamp_score",
    "compute_success_rate",
    "decayed_score",
    "mean_trust",
    "EscalationResult",
    "evaluate_delegation_level",
]
