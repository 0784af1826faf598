# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Static tables that turn an action into presentation data.

The engine only produces data: headline, explanation, voice script and an
ambient-signal identifier. Encoding the signal as light, sound or warmth is
the presenter's job.
"""

from __future__ import annotations

from aico_autonomy.records import (
    AlternativeAction,
    AutonomousAction,
    ProposalPresentation,
)
from aico_autonomy.types import DelegationDomain

# Headline per action type. Unlisted types fall back to the action description.
ACTION_HEADLINES: dict[str, str] = {
    "adjust_temperature": "Temperature adjustment",
    "adjust_lights": "Lighting adjustment",
    "activate_scene": "Scene activation",
    "lock_doors": "Lock doors",
    "shift_load": "Energy load shift",
    "set_reminder": "Reminder",
}

# Ambient signal per domain. Unlisted domains use DEFAULT_AMBIENT_SIGNAL.
AMBIENT_SIGNALS: dict[DelegationDomain, str] = {
    DelegationDomain.CLIMATE: "thermal_whisper",
    DelegationDomain.LIGHTING: "breath_of_light",
    DelegationDomain.SECURITY: "attention_gentle",
}

DEFAULT_AMBIENT_SIGNAL = "notification_chime"

# Gentler variants offered next to a proposal: (description, reason, tradeoffs).
ALTERNATIVES: dict[str, tuple[str, str, list[str]]] = {
    "adjust_temperature": (
        "Smaller temperature change",
        "More conservative approach",
        ["Less energy saved", "Smaller change"],
    ),
    "adjust_lights": (
        "Dim the lights instead",
        "Keeps the room usable",
        ["Less dramatic change"],
    ),
}


def headline_for(action: AutonomousAction) -> str:
    return ACTION_HEADLINES.get(action.type, action.description)


def ambient_signal_for(domain: DelegationDomain) -> str:
    return AMBIENT_SIGNALS.get(domain, DEFAULT_AMBIENT_SIGNAL)


def build_presentation(action: AutonomousAction) -> ProposalPresentation:
    """Build the presentation data for a proposal of *action*."""
    explanation = action.reason.primary if action.reason else action.description
    if action.reason:
        voice_script = f"{action.description}. {action.reason.primary}"
    else:
        voice_script = action.description
    return ProposalPresentation(
        headline=headline_for(action),
        explanation=explanation,
        voice_script=voice_script,
        ambient_signal=ambient_signal_for(action.domain),
    )


def build_alternatives(action: AutonomousAction) -> list[AlternativeAction]:
    """Return gentler variants of *action*, if the table lists any."""
    entry = ALTERNATIVES.get(action.type)
    if entry is None:
        return []
    description, reason, tradeoffs = entry
    variant = action.model_copy(
        update={"id": f"{action.id}_alt1", "description": description},
        deep=True,
    )
    return [AlternativeAction(action=variant, reason=reason, tradeoffs=list(tradeoffs))]
