# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aico_autonomy.profiles.models import (
    BehaviorBaseline,
    ConfidenceThresholds,
    CorrectionRecord,
    DelegationPreferences,
    DelegationProfile,
    DomainDelegation,
    SchedulePattern,
    TrustCalibration,
)
from aico_autonomy.profiles.store import AutonomyStore, validate_user_id

__all__ = [
    "AutonomyStore",
    "validate_user_id",
    "DelegationPreferences",
    "DelegationProfile",
    "DomainDelegation",
    "TrustCalibration",
    "ConfidenceThresholds",
    "BehaviorBaseline",
    "CorrectionRecord",
    "SchedulePattern",
]
