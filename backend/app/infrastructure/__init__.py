"""Infrastructure Layer — database sessions, the temp file store and logging.

Invariants:
    - Infrastructure never imports from core/ domain logic, errors excepted
    - IO failures mapped to StorefrontError subclasses at this boundary

Design Decisions:
    - Thin adapters over raw clients (SQLAlchemy engine, filesystem)
"""
