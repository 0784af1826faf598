# SPDX-License-Identifier: BSL-1.1
# Copyright (c) 2026 MuVeraAI Corporation

"""
Delegation hierarchy helpers and the per-domain default tables.

Levels are IntEnum members, so position in the hierarchy is the integer
value. Stepping is always by exactly one rung and clamps at both ends.
"""

from __future__ import annotations

from aico_autonomy.types import ApprovalType, DelegationDomain, DelegationLevel

#: Hierarchy in order, least to most autonomous.
DELEGATION_HIERARCHY: tuple[DelegationLevel, ...] = tuple(DelegationLevel)

#: Lowest rung; downgrades stop here.
DELEGATION_LEVEL_MIN: DelegationLevel = DelegationLevel.INFORM

#: Highest rung.
DELEGATION_LEVEL_MAX: DelegationLevel = DelegationLevel.AUTO_SILENT

# Starting level for a new profile. Domains not listed start at SUGGEST.
DEFAULT_DOMAIN_LEVELS: dict[DelegationDomain, DelegationLevel] = {
    DelegationDomain.LIGHTING: DelegationLevel.SUGGEST,
    DelegationDomain.CLIMATE: DelegationLevel.SUGGEST,
    DelegationDomain.SECURITY: DelegationLevel.INFORM,
    DelegationDomain.PURCHASES: DelegationLevel.INFORM,
    DelegationDomain.SOCIAL: DelegationLevel.INFORM,
}

# Ceiling for a new profile. Domains not listed may reach AUTO_SILENT.
DEFAULT_DOMAIN_CEILINGS: dict[DelegationDomain, DelegationLevel] = {
    DelegationDomain.PURCHASES: DelegationLevel.PROPOSE,
    DelegationDomain.SOCIAL: DelegationLevel.PROPOSE,
    DelegationDomain.SECURITY: DelegationLevel.AUTO_NOTIFY,
}

APPROVAL_FOR_LEVEL: dict[DelegationLevel, ApprovalType] = {
    DelegationLevel.INFORM: ApprovalType.NONE,
    DelegationLevel.SUGGEST: ApprovalType.ONE_TAP,
    DelegationLevel.PROPOSE: ApprovalType.CONFIRMATION,
    DelegationLevel.AUTO_REVERSIBLE: ApprovalType.CANCELABLE,
    DelegationLevel.AUTO_NOTIFY: ApprovalType.NONE,
    DelegationLevel.AUTO_SILENT: ApprovalType.NONE,
}


def default_level_for(domain: DelegationDomain) -> DelegationLevel:
    """Return the starting level for *domain* on a fresh profile."""
    return DEFAULT_DOMAIN_LEVELS.get(domain, DelegationLevel.SUGGEST)


def default_ceiling_for(domain: DelegationDomain) -> DelegationLevel:
    """Return the user-adjustable ceiling for *domain* on a fresh profile."""
    return DEFAULT_DOMAIN_CEILINGS.get(domain, DelegationLevel.AUTO_SILENT)


def approval_type_for(level: DelegationLevel) -> ApprovalType:
    """Return the approval gesture a proposal at *level* requires."""
    return APPROVAL_FOR_LEVEL[level]


def is_level_sufficient(current: DelegationLevel, required: DelegationLevel) -> bool:
    """True if *current* sits at or above *required* in the hierarchy."""
    return current >= required


def step_up(level: DelegationLevel, ceiling: DelegationLevel = DELEGATION_LEVEL_MAX) -> DelegationLevel:
    """Return the next rung above *level*, never passing *ceiling*."""
    if level >= ceiling:
        return level
    return DelegationLevel(int(level) + 1)


def step_down(level: DelegationLevel) -> DelegationLevel:
    """Return the rung below *level*, stopping at INFORM."""
    if level <= DELEGATION_LEVEL_MIN:
        return level
    return DelegationLevel(int(level) - 1)


def cap_level(level: DelegationLevel, ceiling: DelegationLevel) -> DelegationLevel:
    """Clamp *level* to *ceiling*."""
    return min(level, ceiling)


def describe_comparison(current: DelegationLevel, required: DelegationLevel) -> str:
    """Human-readable comparison used in denial reasons."""
    relation = ">=" if current >= required else "<"
    return f"{current.slug} ({int(current)}) {relation} {required.slug} ({int(required)})"
