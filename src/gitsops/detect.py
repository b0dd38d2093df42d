# src/gitsops/detect.py: Encrypted content heuristic.
# A best-effort check for sops ciphertext. It looks for the ENC[ token sops
# writes around every encrypted value. Plaintext that happens to contain the
# token is reported as encrypted, and a future sops marker format would be
# missed. Only the bulk decrypt in `init` relies on it.

from typing import Union

ENCRYPTION_MARKER = b"ENC["


def is_encrypted(content: Union[bytes, str]) -> bool:
    """Return True if content contains the sops ciphertext marker."""
    if isinstance(content, str):
        content = content.encode("utf-8")
    return ENCRYPTION_MARKER in content
