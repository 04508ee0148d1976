"""Random keystore password generation."""

from __future__ import annotations

import base64
import secrets

from ..exceptions import RandomSourceError

PASSWORD_ENTROPY_BYTES = 16


def generate_password() -> str:
    """Generate a random keystore password.

    16 random bytes encoded as base32 (``A-Z2-7``) with the trailing ``=``
    padding stripped, which gives a 26 character string that is safe in
    URLs, file names and shell arguments.

    Returns:
        The generated password

    Raises:
        RandomSourceError: If the operating system random source fails
    """
    try:
        raw = secrets.token_bytes(PASSWORD_ENTROPY_BYTES)
    except (OSError, NotImplementedError) as e:
        raise RandomSourceError(f"Random source unavailable: {e}") from e

    if len(raw) != PASSWORD_ENTROPY_BYTES:
        raise RandomSourceError(
            f"Random source returned {len(raw)} bytes, expected {PASSWORD_ENTROPY_BYTES}"
        )

    return base64.b32encode(raw).decode("ascii").rstrip("=")
