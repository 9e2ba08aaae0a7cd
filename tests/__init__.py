"""
Regscreen Test Suite
====================

Layout:
- tests/unit/                      - settings, logging and shared models
- tests/services/applicability/    - pipeline, scoring, confidence,
                                     similarity, corpus and API tests

Everything runs in-memory against fixture corpora; no external services.

Run tests:
    pytest
    pytest tests/unit
    pytest tests/services/applicability -k scenario
"""
