"""HMAC-SHA256 webhook signatures.

The signature is the lowercase hex digest of the exact request body bytes
keyed with the shared webhook secret.  Comparison is constant-time.
"""

from __future__ import annotations

import hashlib
import hmac
from typing import Optional


def compute_signature(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()


def verify_signature(body: bytes, signature: Optional[str], secret: str) -> bool:
    """``False`` for a missing header, an empty secret or any mismatch."""
    if not signature or not secret:
        return False
    # Headers arrive latin-1 decoded; a hex digest is plain ASCII.
    if not signature.isascii():
        return False
    expected = compute_signature(body, secret)
    return hmac.compare_digest(expected, signature.strip().lower())
