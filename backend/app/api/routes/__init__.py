"""Route Modules — one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Routes never contain business logic (delegate to core/ and services/)

Design Decisions:
    - Explicit registration in main.py over auto-discovery; order matters because
      several routers share the /api/v1/forms prefix
"""
