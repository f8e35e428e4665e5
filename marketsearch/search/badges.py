"""
Seller Badge Resolver
Resolve {verified, tier} seller badges from loosely-typed seller records.

Seller records have no fixed schema for trust fields, so resolution is an
ordered list of field probes. Each probe scans its field names in priority
order and returns the first value it can interpret; the first probe that
answers wins.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

from .models import SellerBadge, Tier
from .store import SearchStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

VERIFIED_FIELDS: Tuple[str, ...] = (
    "verified",
    "isVerified",
    "accountVerified",
    "sellerVerified",
    "isSellerVerified",
    "verifiedSeller",
    "isAccountVerified",
)

VERIFIED_AT_FIELDS: Tuple[str, ...] = (
    "verifiedAt",
    "verified_at",
    "verifiedOn",
    "verified_on",
    "verificationDate",
    "verification_date",
)

VERIFIED_TRUE_WORDS: Tuple[str, ...] = ("1", "true", "yes", "verified")
VERIFIED_FALSE_WORDS: Tuple[str, ...] = ("0", "false", "no", "unverified")

# Characters trimmed from flag and timestamp strings; the SQL filter trims the same set
TRIM_CHARS = " \t\n\r\f\v"

TIER_FIELDS: Tuple[str, ...] = (
    "featuredTier",
    "featured_tier",
    "sellerFeaturedTier",
    "subscriptionTier",
    "subscription_tier",
    "subscription",
    "plan",
    "tier",
)

# Keys inspected when a tier field holds an object, e.g. {"name": "Gold plan"}
_TIER_OBJECT_KEYS = ("tier", "plan", "name", "level", "type", "value")


@dataclass(frozen=True)
class FieldProbe(Generic[T]):
    """Scans named fields of a record with one extractor."""

    fields: Tuple[str, ...]
    extract: Callable[[Any], Optional[T]]

    def probe(self, record: Mapping[str, Any]) -> Optional[T]:
        for name in self.fields:
            if name not in record:
                continue
            value = self.extract(record[name])
            if value is not None:
                return value
        return None


def first_answer(probes: Iterable[FieldProbe[T]], record: Mapping[str, Any]) -> Optional[T]:
    for probe in probes:
        value = probe.probe(record)
        if value is not None:
            return value
    return None


def flag_value(value: Any) -> Optional[bool]:
    """Interpret a boolean-looking value; None when it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float, Decimal)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value != 0
    if isinstance(value, str):
        word = value.strip(TRIM_CHARS).lower()
        if word in VERIFIED_TRUE_WORDS:
            return True
        if word in VERIFIED_FALSE_WORDS:
            return False
    return None


def timestamp_presence(value: Any) -> Optional[bool]:
    """A non-empty verification timestamp implies a verified seller."""
    if value is None:
        return None
    if isinstance(value, str) and not value.strip(TRIM_CHARS):
        return None
    return True


def normalize_tier(value: Any) -> Tier:
    text = str(value or "").strip().lower()
    if "diamond" in text:
        return Tier.DIAMOND
    if "gold" in text:
        return Tier.GOLD
    return Tier.BASIC


def tier_value(value: Any) -> Optional[Tier]:
    if isinstance(value, Mapping):
        for key in _TIER_OBJECT_KEYS:
            nested = value.get(key)
            if isinstance(nested, str) and nested.strip():
                return normalize_tier(nested)
        return None
    if isinstance(value, str) and value.strip():
        return normalize_tier(value)
    return None


VERIFIED_PROBES: Tuple[FieldProbe[bool], ...] = (
    FieldProbe(VERIFIED_FIELDS, flag_value),
    FieldProbe(VERIFIED_AT_FIELDS, timestamp_presence),
)

TIER_PROBES: Tuple[FieldProbe[Tier], ...] = (FieldProbe(TIER_FIELDS, tier_value),)


def resolve_verified(record: Any) -> bool:
    if not isinstance(record, Mapping):
        return False
    return bool(first_answer(VERIFIED_PROBES, record))


def resolve_tier(record: Any) -> Tier:
    if not isinstance(record, Mapping):
        return Tier.BASIC
    return first_answer(TIER_PROBES, record) or Tier.BASIC


def resolve_badge(seller_id: str, record: Any) -> SellerBadge:
    """
    Resolve one seller's badge.

    Args:
        seller_id: Seller id the record belongs to
        record: Seller record as a key/value mapping (anything else resolves
            to the default badge)

    Returns:
        SellerBadge, defaulting to verified=False, tier=basic
    """
    return SellerBadge(
        seller_id=seller_id,
        verified=resolve_verified(record),
        tier=resolve_tier(record),
    )


def distinct_seller_ids(seller_ids: Iterable[Optional[str]]) -> List[str]:
    """Distinct non-empty ids, first-seen order."""
    seen: Dict[str, None] = {}
    for seller_id in seller_ids:
        if seller_id:
            seen.setdefault(str(seller_id), None)
    return list(seen)


class SellerBadgeResolver:
    """
    Batched badge lookup for the sellers on one result page.

    Trust badges are advisory UI: a failed lookup or malformed record yields
    the default badge instead of failing the request.
    """

    def __init__(self, store: SearchStore):
        self.store = store

    async def resolve(self, seller_ids: Sequence[Optional[str]]) -> Dict[str, SellerBadge]:
        """
        Resolve badges for a batch of seller ids.

        Args:
            seller_ids: Seller ids from the current page (duplicates and
                blanks are ignored)

        Returns:
            Dict mapping seller id -> SellerBadge for every seller the store
            returned; missing sellers are left to the caller's default
        """
        ids = distinct_seller_ids(seller_ids)
        if not ids:
            return {}

        try:
            records = await self.store.fetch_sellers(ids)
        except Exception as e:
            logger.warning(f"Seller badge lookup failed for {len(ids)} sellers: {e}")
            return {}

        badges: Dict[str, SellerBadge] = {}
        for seller_id in ids:
            if seller_id not in records:
                continue
            try:
                badges[seller_id] = resolve_badge(seller_id, records[seller_id])
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Malformed seller record {seller_id}: {e}")
                badges[seller_id] = SellerBadge(seller_id=seller_id)

        logger.debug(f"Resolved {len(badges)}/{len(ids)} seller badges")
        return badges
