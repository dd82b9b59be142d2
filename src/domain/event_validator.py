"""
Validation of the SES receipt event that triggers the forwarder.
"""

import logging
from typing import Any, Dict

from .exceptions import InvalidEventError
from .models import InboundEnvelope

logger = logging.getLogger(__name__)

SES_EVENT_SOURCE = 'aws:ses'
SES_EVENT_VERSION = '1.0'


def validate_event(event: Dict[str, Any]) -> InboundEnvelope:
    """
    Check that event is a single SES receipt record and extract its envelope.

    Args:
        event: Lambda event delivered by the SES receipt rule

    Returns:
        InboundEnvelope with the message id and original recipients in event order

    Raises:
        InvalidEventError: If the event is not exactly one SES record of the
            supported version, or mail/receipt metadata is missing

    Example:
        >>> envelope = validate_event({"Records": [{
        ...     "eventSource": "aws:ses", "eventVersion": "1.0",
        ...     "ses": {"mail": {"messageId": "abc"},
        ...             "receipt": {"recipients": ["info@example.com"]}}}]})
        >>> envelope.original_recipients
        ('info@example.com',)
    """
    if not isinstance(event, dict):
        raise InvalidEventError("Received invalid SES message: event is not an object")

    records = event.get('Records')
    if not isinstance(records, list) or len(records) != 1:
        count = len(records) if isinstance(records, list) else 'no'
        raise InvalidEventError(
            f"Received invalid SES message: expected exactly one record, got {count}"
        )

    record = records[0]
    if not isinstance(record, dict):
        raise InvalidEventError("Received invalid SES message: record is not an object")

    if record.get('eventSource') != SES_EVENT_SOURCE:
        raise InvalidEventError(
            f"Received invalid SES message: unexpected eventSource "
            f"{record.get('eventSource')!r}"
        )

    if record.get('eventVersion') != SES_EVENT_VERSION:
        raise InvalidEventError(
            f"Received invalid SES message: unsupported eventVersion "
            f"{record.get('eventVersion')!r}"
        )

    ses = record.get('ses')
    mail = ses.get('mail') if isinstance(ses, dict) else None
    receipt = ses.get('receipt') if isinstance(ses, dict) else None
    if not isinstance(mail, dict) or not isinstance(receipt, dict):
        raise InvalidEventError("Received invalid SES message: missing 'mail' or 'receipt'")

    message_id = mail.get('messageId')
    if not message_id or not isinstance(message_id, str):
        raise InvalidEventError("Received invalid SES message: missing mail.messageId")

    recipients = receipt.get('recipients')
    if (
        not isinstance(recipients, list)
        or not recipients
        or not all(isinstance(r, str) and r for r in recipients)
    ):
        raise InvalidEventError(
            "Received invalid SES message: receipt.recipients must be a non-empty list of addresses"
        )

    source = mail.get('source')
    return InboundEnvelope(
        message_id=message_id,
        original_recipients=tuple(recipients),
        source=source if isinstance(source, str) else None
    )
