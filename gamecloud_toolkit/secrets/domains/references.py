"""Parsing of secret-store references embedded in configuration values.

A reference looks like:

    @Microsoft.KeyVault(SecretUri=https://myvault.vault.azure.net/secrets/DbKey/4f1c...)

Only the secret name is extracted; the vault host and version are ignored
because secrets are always fetched by name from the configured store.
"""
import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

# @<Provider>(SecretUri=https://<vault>/secrets/<name>/<version...>)
_REFERENCE_HEAD = re.compile(r"^@[A-Za-z][A-Za-z0-9_]*(?:\.[A-Za-z][A-Za-z0-9_]*)*\(SecretUri=")
_REFERENCE_URI = re.compile(r"^https://[^/\s()]+/secrets/([^/\s()]+)/[^\s()]*\)$")


def is_reference(raw: object) -> bool:
    """Return True if raw carries the provider-indirection prefix."""
    return isinstance(raw, str) and _REFERENCE_HEAD.match(raw) is not None


def parse_reference(raw: object) -> Optional[str]:
    """
    Extract the secret name from a reference string.

    Args:
        raw: Configuration value that starts with the reference prefix

    Returns:
        Secret name (case preserved), or None if raw is not a well-formed
        reference. Never raises.
    """
    if not is_reference(raw):
        return None

    head = _REFERENCE_HEAD.match(raw)
    match = _REFERENCE_URI.match(raw[head.end():])
    if not match:
        logger.warning("Malformed secret reference, ignoring it")
        return None
    return match.group(1)
