"""Slug and handle generation.

Identifiers are derived from a human name and made unique by checking
``base``, ``base-2``, ``base-3`` ... against a registry of reserved values.
The lookup result is only a candidate: callers claim it with a conditional
write and look again when that write loses a race.
"""

import re
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

import structlog

from flashsynch.utils.exceptions import ConflictError

logger = structlog.get_logger()

CARD_SLUG_MAX_LENGTH = 50
USER_HANDLE_MAX_LENGTH = 30
MAX_SUFFIXES = 1000
MAX_ALLOCATION_ATTEMPTS = 5

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")

T = TypeVar("T")


class IdentifierLookup(Protocol):
    """Read side of an identifier registry."""

    def count_matching(self, base: str) -> int: ...

    def exists(self, value: str) -> bool: ...


def slugify(text: str, max_length: int, fallback: str) -> str:
    """Turn free text into a URL-safe identifier.

    Args:
        text: Human input such as "Ada Lovelace".
        max_length: Maximum identifier length.
        fallback: Value used when nothing alphanumeric survives.

    Returns:
        Lowercase identifier matching ``[a-z0-9-]+``.
    """
    slug = _NON_ALPHANUMERIC.sub("-", text.lower()).strip("-")
    slug = slug[:max_length].rstrip("-")
    return slug or fallback


def card_slug_base(first_name: str, last_name: str) -> str:
    return slugify(f"{first_name} {last_name}", CARD_SLUG_MAX_LENGTH, fallback="card")


def user_handle_base(display_name: str) -> str:
    return slugify(display_name, USER_HANDLE_MAX_LENGTH, fallback="user")


def generate_unique_identifier(base: str, registry: IdentifierLookup) -> str:
    """Find the first free identifier for ``base``.

    Args:
        base: Slugified base value.
        registry: Registry of already reserved identifiers.

    Returns:
        ``base`` when unused, otherwise the first free ``base-N`` (N >= 2).
        After ``MAX_SUFFIXES`` taken suffixes, ``base-<epoch millis>``.
    """
    if registry.count_matching(base) == 0:
        return base

    for suffix in range(2, MAX_SUFFIXES + 2):
        candidate = f"{base}-{suffix}"
        if not registry.exists(candidate):
            return candidate

    logger.warning("Identifier suffixes exhausted, using timestamp suffix", base=base)
    return f"{base}-{int(time.time() * 1000)}"


def allocate_identifier(
    base: str,
    registry: IdentifierLookup,
    claim: Callable[[str], T],
) -> T:
    """Find a free identifier and claim it, retrying lost races.

    Args:
        base: Slugified base value.
        registry: Registry used for existence checks.
        claim: Persists the record with the candidate identifier. Must raise
            ``ConflictError`` when the identifier was taken in the meantime.

    Returns:
        Whatever ``claim`` returns.

    Raises:
        ConflictError: If every attempt lost its race.
    """
    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        candidate = generate_unique_identifier(base, registry)
        try:
            return claim(candidate)
        except ConflictError:
            logger.info("Identifier claimed concurrently, retrying", candidate=candidate, attempt=attempt)

    raise ConflictError(f"Could not allocate a unique identifier for '{base}'")
