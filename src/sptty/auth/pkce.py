"""PKCE (Proof Key for Code Exchange, :rfc:`7636`) helpers.

A fresh :func:`generate_verifier` is drawn for every authorization attempt
and never persisted. :func:`derive_challenge` turns it into the S256
challenge sent to the authorization endpoint; the verifier itself is only
ever sent to the token endpoint.
"""

from __future__ import annotations

import base64
import hashlib
import secrets
import string

VERIFIER_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits + "_.-~"
VERIFIER_LENGTH = 128


def _sample_index() -> int:
    """Return a uniform index into :data:`VERIFIER_ALPHABET`.

    Draws 7 random bits and rejects values past the 66-symbol range, which
    avoids the modulo bias a plain ``% 66`` would introduce.
    """
    while True:
        value = secrets.randbits(7)
        if value < len(VERIFIER_ALPHABET):
            return value


def generate_verifier() -> str:
    """Generate a 128-character code verifier from the unreserved alphabet."""
    return "".join(VERIFIER_ALPHABET[_sample_index()] for _ in range(VERIFIER_LENGTH))


def derive_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for *verifier*.

    ``BASE64URL-ENCODE(SHA256(ASCII(code_verifier)))`` without padding,
    which is always 43 characters long.
    """
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
