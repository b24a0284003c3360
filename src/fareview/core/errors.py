# src/fareview/core/errors.py

from __future__ import annotations

from typing import Optional


class FareviewError(Exception):
    """Base class for pipeline errors."""


class MalformedOfferError(FareviewError, ValueError):
    """A raw offer is missing data the normalizer needs."""

    def __init__(self, message: str, offer_id: Optional[str] = None):
        self.offer_id = offer_id
        prefix = f"offer {offer_id}: " if offer_id else ""
        super().__init__(f"{prefix}{message}")


class InvalidFilterError(FareviewError, ValueError):
    """A filter state violates its own bounds (e.g. min > max)."""


class InvalidSearchParamsError(FareviewError, ValueError):
    pass


class FetchError(FareviewError, RuntimeError):
    """The offer provider failed for a search key."""
