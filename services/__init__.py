"""
Regscreen Services
==================

Services for the regulation screening platform.

Services:
- applicability: Applicability matching, confidence scoring and
  organization similarity
"""

__all__ = [
    "applicability",
]
