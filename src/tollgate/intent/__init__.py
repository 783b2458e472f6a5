"""
Prompt intent classification and directive rendering.
"""

from tollgate.intent.classifier import Intent, classify, is_status_query, is_trivial, normalize
from tollgate.intent.directives import (
    intent_directive,
    recovery_block,
    reinforce_block,
    status_directive,
)

__all__ = [
    "Intent",
    "classify",
    "intent_directive",
    "is_status_query",
    "is_trivial",
    "normalize",
    "recovery_block",
    "reinforce_block",
    "status_directive",
]
