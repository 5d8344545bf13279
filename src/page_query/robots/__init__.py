"""robots.txt compliance.

- ``policy`` — parsed rule sets and robots.txt URL derivation
- ``gate``   — cached allow/deny decisions (``ComplianceGate``)
"""

from __future__ import annotations

from page_query.robots.gate import ComplianceGate
from page_query.robots.policy import RobotsPolicy, build_policy_url

__all__ = [
    "ComplianceGate",
    "RobotsPolicy",
    "build_policy_url",
]
