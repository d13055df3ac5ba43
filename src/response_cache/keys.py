"""Deterministic fingerprints for (prompt, context) pairs."""

import hashlib

# ASCII unit separator; not expected in prompts or contexts.
KEY_SEPARATOR = "\x1f"

FINGERPRINT_LENGTH = 64


def fingerprint(prompt: str, context: str | None = None) -> str:
    """Compute the exact-match key for a prompt and optional context.

    An empty context is equivalent to no context.

    Args:
        prompt: The prompt text
        context: Optional context the prompt was issued in

    Returns:
        SHA-256 hex digest (64 characters)
    """
    content = f"{context}{KEY_SEPARATOR}{prompt}" if context else prompt
    # Lone surrogates are hashed as their raw code units.
    return hashlib.sha256(content.encode("utf-8", errors="surrogatepass")).hexdigest()


def short_key(key: str) -> str:
    """Truncate a fingerprint for log output."""
    return key[:8]
