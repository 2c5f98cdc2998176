"""Airtable OAuth helpers — PKCE (S256) verifier/challenge and authorize URL.

Invariants:
    - Verifier is 32 random bytes, base64url without padding (RFC 7636)
    - State is 16 random bytes hex, compared verbatim against the cookie on callback
    - Token exchange lives on ResilientAirtableClient (single outbound HTTP client)

Design Decisions:
    - The token response carries no user id; the account is identified afterwards
      through the whoami endpoint so repeat logins map to the same User
"""

import base64
import hashlib
import secrets
from urllib.parse import urlencode


def _base64url(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    return _base64url(secrets.token_bytes(32))


def generate_code_challenge(verifier: str) -> str:
    return _base64url(hashlib.sha256(verifier.encode("ascii")).digest())


def generate_state() -> str:
    return secrets.token_hex(16)


def build_authorize_url(
    *,
    auth_url: str,
    client_id: str,
    redirect_uri: str,
    scope: str,
    state: str,
    code_challenge: str,
) -> str:
    query = urlencode({
        "client_id": client_id,
        "response_type": "code",
        "redirect_uri": redirect_uri,
        "scope": scope,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": "S256",
    })
    return f"{auth_url.rstrip('/')}/authorize?{query}"
