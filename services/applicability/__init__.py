"""
Applicability Service
=====================

Screens organization profiles against the UK regulation corpus.

Features:
- Layered filter pipeline (status, geography, sector, size, role)
- Weighted multi-dimensional applicability scoring
- Confidence intervals and manual-review flags
- Anonymized similar-organization matching
- Profile completeness and quality analysis

Port: 8010
"""

__version__ = "0.1.0"
