"""Scoring policy — one canonical, read-only table of weights and ladders."""

from pramaan.policy.resolver import (
    DEFAULT_POLICY,
    BonusRule,
    PolicyResolver,
    default_resolver,
)

__all__ = ["DEFAULT_POLICY", "BonusRule", "PolicyResolver", "default_resolver"]
