from __future__ import annotations

import hashlib


def sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def truncate_tail(text: str, limit: int = 2000) -> str:
    """Keep the last `limit` characters; encoder diagnostics end with the cause."""
    text = text or ""
    if len(text) <= limit:
        return text
    return "..." + text[-limit:]
