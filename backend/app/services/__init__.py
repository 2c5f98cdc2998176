"""Services Layer — async orchestration around the pure core.

Invariants:
    - Services call core/ for every decision and only add IO around it
    - No route logic here: services never build HTTP responses

Design Decisions:
    - One module per workflow for locality (submission, response persistence)
"""
