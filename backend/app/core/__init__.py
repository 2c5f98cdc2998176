"""Core Layer — pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic
    - Visibility evaluation and submission enforcement live here so the rendering
      endpoint and the submit endpoint share one implementation

Design Decisions:
    - Functional core separated from imperative shell
"""
