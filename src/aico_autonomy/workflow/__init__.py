# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation
from __future__ import annotations

from aico_autonomy.workflow.permissions import PermissionWorkflow
from aico_autonomy.workflow.presentation import (
    AMBIENT_SIGNALS,
    ACTION_HEADLINES,
    DEFAULT_AMBIENT_SIGNAL,
    build_alternatives,
    build_presentation,
)
from aico_autonomy.workflow.proposals import FEEDBACK_OUTCOMES, FeedbackKind, ProposalWorkflow

__all__ = [
    "ProposalWorkflow",
    "PermissionWorkflow",
    "FeedbackKind",
    "FEEDBACK_OUTCOMES",
    "ACTION_HEADLINES",
    "AMBIENT_SIGNALS",
    "DEFAULT_AMBIENT_SIGNAL",
    "build_presentation",
    "build_alternatives",
]
