"""
Resolution of original recipients to forwarding destinations.

Each original address is matched against the forward mapping in four tiers,
highest precedence first:

1. exact address      "user@domain"
2. domain wildcard    "@domain"
3. mailbox wildcard   "user"
4. catch-all          "@"

Only the first tier that matches contributes destinations for that address.
"""

import logging
from typing import Iterable, Mapping, Optional, Sequence, Tuple

from .models import ForwardingConfig, MatchTier, ResolvedRecipients

logger = logging.getLogger(__name__)

CATCH_ALL_KEY = '@'


def normalize_address(address: str, allow_plus_sign: bool = False) -> str:
    """
    Build the mapping lookup key for an address.

    Lowercases the address and, with plus-sign support, drops everything
    from the first '+' up to the '@' in the local part.

    Example:
        >>> normalize_address("Info+News@Example.com", allow_plus_sign=True)
        'info@example.com'
    """
    key = address.strip().lower()
    if not allow_plus_sign:
        return key

    local_part, at, domain = key.partition('@')
    return local_part.split('+', 1)[0] + at + domain


def match_address(
    key: str,
    forward_mapping: Mapping[str, Sequence[str]]
) -> Optional[Tuple[MatchTier, Sequence[str]]]:
    """
    Find the highest-precedence mapping entry for a normalized address.

    Returns:
        (tier, destinations) or None when no tier matches
    """
    if key in forward_mapping:
        return MatchTier.EXACT, forward_mapping[key]

    local_part, _, domain = key.partition('@')
    if domain and f"@{domain}" in forward_mapping:
        return MatchTier.DOMAIN, forward_mapping[f"@{domain}"]

    if local_part and local_part in forward_mapping:
        return MatchTier.MAILBOX, forward_mapping[local_part]

    if CATCH_ALL_KEY in forward_mapping:
        return MatchTier.CATCH_ALL, forward_mapping[CATCH_ALL_KEY]

    return None


def resolve_recipients(
    original_recipients: Iterable[str],
    config: ForwardingConfig
) -> ResolvedRecipients:
    """
    Compute the deduplicated destination list for all original recipients.

    Args:
        original_recipients: Addresses from the SES receipt, in event order
        config: Forwarding configuration with the mapping and plus-sign flag

    Returns:
        ResolvedRecipients whose addresses keep first-occurrence order. The
        sending identity is the first original address that matched, or the
        first original address when nothing matched.
    """
    original_recipients = list(original_recipients)
    addresses = []
    seen = set()
    matches = {}

    for address in original_recipients:
        key = normalize_address(address, config.allow_plus_sign)
        found = match_address(key, config.forward_mapping)

        if found is None:
            logger.info(f"No forward mapping for {address}, dropping")
            continue

        tier, destinations = found
        matches[address] = tier
        logger.info(f"Mapped {address} via {tier.value} rule to {list(destinations)}")

        for destination in destinations:
            if destination not in seen:
                seen.add(destination)
                addresses.append(destination)

    if matches:
        original_recipient = next(iter(matches))
    else:
        original_recipient = original_recipients[0] if original_recipients else ''

    return ResolvedRecipients(
        addresses=addresses,
        original_recipient=original_recipient,
        matches=matches
    )
