"""Cache key generation — operation-prefixed content digests."""

from __future__ import annotations

import hashlib
import json
from typing import Any

# Only the head of the prompt feeds the digest
PROMPT_KEY_CHARS = 500
_DIGEST_CHARS = 16


def generate_cache_key(operation: str, prompt: str, params: Any = None) -> str:
    """Generate a cache key of the form ``<operation>-<16 hex chars>``.

    The digest is SHA-256 over the operation, the first 500 characters of the
    prompt and the serialised params. Params are serialised with sorted keys,
    so two mappings with the same items in a different order share a key.
    """
    document = {
        "operation": operation,
        "prompt": prompt[:PROMPT_KEY_CHARS],
        "params": _serialize_params(params),
    }
    digest = hashlib.sha256(json.dumps(document).encode("utf-8")).hexdigest()
    return f"{operation}-{digest[:_DIGEST_CHARS]}"


def _serialize_params(params: Any) -> str:
    """Deterministic JSON of params via sorted keys."""
    if params is None:
        return ""
    return json.dumps(params, sort_keys=True, default=str)
