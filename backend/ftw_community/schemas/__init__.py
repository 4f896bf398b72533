# Schemas package init
"""
FTW Community Backend — Pydantic Request/Response Schemas
==========================================================

    - common.py:     error, health and plain message envelopes
    - auth.py:       login, session user, onboarding and passkey change
    - community.py:  colleges, staff, assignments, tasks, reports
    - content.py:    applications, events, videos, top rated, stats

Schemas are separate from the ORM models: responses never carry the
passkey hash, and permission flags are computed, never read from a column.
"""
