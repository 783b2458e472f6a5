"""
Policy checks for Tollgate.

predicates holds the stateless string checks; antiprod holds the P0 to P3
anti-production rule table used by both write chains.
"""

from tollgate.policy.antiprod import AntiProdRule, scan

__all__ = ["AntiProdRule", "scan"]
