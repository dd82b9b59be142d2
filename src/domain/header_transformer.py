"""
Header rewriting for forwarded messages.

SES only sends from verified identities, so the original From header is
rewritten and headers that would be rejected or invalid after forwarding
are removed. The body is never decoded or modified.
"""

import logging
import re
from typing import List, Optional

from services.email import (
    HeaderField,
    decode_header_block,
    detect_line_ending,
    encode_header_block,
    parse_header_block,
    serialize_header_block,
)
from .models import ForwardingConfig, RawMessage

logger = logging.getLogger(__name__)

REMOVED_HEADERS = ('Return-Path', 'Sender', 'Message-ID')
DKIM_HEADER = 'DKIM-Signature'

_ANGLE_ADDRESS_RE = re.compile(r'<.*>')


def _new_field(name: str, value: str, line_ending: str) -> HeaderField:
    return HeaderField(raw=f"{name}: {value}{line_ending}", name=name)


def _find(fields: List[HeaderField], name: str) -> Optional[HeaderField]:
    return next((f for f in fields if f.matches(name)), None)


def rewrite_from_value(
    from_value: str,
    from_email: Optional[str],
    original_recipient: str
) -> str:
    """
    Build the replacement From value.

    With a verified from_email the original display name is kept and the
    address replaced. Without one, the original address stays visible as
    text ("Jane at jane@example.com") and the original recipient becomes the
    sending address.

    Example:
        >>> rewrite_from_value("Jane <jane@example.com>", None, "info@example.com")
        'Jane at jane@example.com <info@example.com>'
        >>> rewrite_from_value("Jane <jane@example.com>", "noreply@example.com", "")
        'Jane <noreply@example.com>'
    """
    if from_email:
        display_name = _ANGLE_ADDRESS_RE.sub('', from_value, count=1).strip()
        if display_name:
            return f"{display_name} <{from_email}>"
        return f"<{from_email}>"

    text = from_value.replace('<', 'at ').replace('>', '')
    return f"{text} <{original_recipient}>"


def add_reply_to(fields: List[HeaderField], default_ending: str) -> List[HeaderField]:
    """Append Reply-To with the original From value unless one exists."""
    if _find(fields, 'Reply-To') is not None:
        return fields

    from_field = _find(fields, 'From')
    if from_field is None:
        return fields

    fields = list(fields)
    if fields and not fields[-1].line_ending:
        fields[-1] = HeaderField(raw=fields[-1].raw + default_ending, name=fields[-1].name)

    ending = from_field.line_ending or default_ending
    fields.append(_new_field('Reply-To', from_field.value, ending))
    logger.debug(f"Added Reply-To from original From: {from_field.value.strip()}")
    return fields


def rewrite_from(
    fields: List[HeaderField],
    from_email: Optional[str],
    original_recipient: str
) -> List[HeaderField]:
    """Replace every From header with a sendable identity."""
    result = []
    for field in fields:
        if field.matches('From'):
            value = rewrite_from_value(field.value, from_email, original_recipient)
            logger.debug(f"Rewrote From header: {value}")
            field = _new_field('From', value, field.line_ending)
        result.append(field)
    return result


def prefix_subject(fields: List[HeaderField], subject_prefix: str) -> List[HeaderField]:
    """Prepend subject_prefix to every Subject value."""
    if not subject_prefix:
        return fields
    return [
        _new_field('Subject', subject_prefix + f.value, f.line_ending) if f.matches('Subject') else f
        for f in fields
    ]


def replace_to(fields: List[HeaderField], to_email: Optional[str]) -> List[HeaderField]:
    """Replace every To header (with its continuations) by to_email."""
    if not to_email:
        return fields
    return [
        _new_field('To', to_email, f.line_ending) if f.matches('To') else f
        for f in fields
    ]


def remove_headers(fields: List[HeaderField], *names: str) -> List[HeaderField]:
    """Drop every field whose name is in names, continuations included."""
    kept = [f for f in fields if not f.matches(*names)]
    removed = len(fields) - len(kept)
    if removed:
        logger.debug(f"Removed {removed} header(s) matching {', '.join(names)}")
    return kept


def transform_headers(
    message: RawMessage,
    config: ForwardingConfig,
    original_recipient: str
) -> RawMessage:
    """
    Rewrite the header block of a message for forwarding through SES.

    Rules, in order:
    1. Add Reply-To with the original From value if none exists
    2. Rewrite From to a verified identity
    3. Prefix Subject with config.subject_prefix
    4. Replace To with config.to_email
    5. Remove Return-Path, Sender and Message-ID
    6. Remove DKIM-Signature (invalid once From changes)

    Args:
        message: Original message split into header and body
        config: Forwarding configuration
        original_recipient: Original destination address, used as the From
            address when config.from_email is not set

    Returns:
        RawMessage with a rewritten header and the identical body bytes
    """
    fields = parse_header_block(decode_header_block(message.header))
    default_ending = detect_line_ending(fields)

    fields = add_reply_to(fields, default_ending)
    fields = rewrite_from(fields, config.from_email, original_recipient)
    fields = prefix_subject(fields, config.subject_prefix)
    fields = replace_to(fields, config.to_email)
    fields = remove_headers(fields, *REMOVED_HEADERS)
    fields = remove_headers(fields, DKIM_HEADER)

    header = encode_header_block(serialize_header_block(fields))
    return RawMessage(header=header, body=message.body)
