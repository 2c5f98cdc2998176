"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (owner input, respondent input, webhooks)
    - Domain enums from core/ used for type/operator/logic fields

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
    - camelCase aliases on the wire, snake_case in Python: the form builder and stored
      question JSON speak camelCase (populate_by_name accepts both)
"""
