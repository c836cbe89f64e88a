"""Schemas Layer — Pydantic request contracts at the API boundary.

Invariants:
    - Request bodies are validated before reaching route handlers
    - Customization `data` shapes live in customization_data (one model per rule type)
"""
