"""Policy Engine.

Submodules:
    loader -- YAML policy documents to validated Policy objects.
    engine -- Evaluation of a policy against one flattened document.
    glob   -- File glob patterns used to scope rules.
"""

from configtrace.policy.engine import check_failure, evaluate, rule_applies
from configtrace.policy.loader import load_policy, parse_policy

__all__ = ["check_failure", "evaluate", "load_policy", "parse_policy", "rule_applies"]
