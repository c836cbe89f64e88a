"""API Layer — FastAPI routes, shared dependencies and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses (files excepted)

Design Decisions:
    - Thin routes delegate to services
"""
