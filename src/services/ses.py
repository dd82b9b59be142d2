"""
SES operations for the forwarding pipeline.

This module submits rewritten raw messages through the SES SendRawEmail API.
"""

import logging
import os
from typing import Sequence

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.exceptions import SendError

logger = logging.getLogger(__name__)

# Configure SES client with NO retries and strict timeouts
ses_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,
    read_timeout=30
)

region = os.environ.get('AWS_REGION', os.environ.get('AWS_DEFAULT_REGION', 'us-east-1'))

# Initialize SES client at module level (thread-safe, reused across invocations)
ses_client = boto3.client('ses', region_name=region, config=ses_config)
logger.info(f"SES client initialized: region={region}, connect=10s, read=30s, max_attempts=1")

# SES error codes reported with a specific description
REJECTION_MESSAGES = {
    'MessageRejected': "SES rejected the message",
    'MailFromDomainNotVerifiedException': "Sending identity is not verified in SES",
    'Throttling': "SES sending rate exceeded",
    'InvalidParameterValue': "SES rejected a message parameter",
    'AccountSendingPausedException': "SES sending is paused for this account",
    'ConfigurationSetDoesNotExist': "SES configuration set does not exist",
}


def send_raw_email(raw_message: bytes, destinations: Sequence[str], source: str) -> str:
    """
    Send a raw message to the given destinations.

    Args:
        raw_message: Complete message bytes (headers + body)
        destinations: Envelope recipients
        source: Envelope sender; must be an SES-verified identity

    Returns:
        str: SES MessageId of the sent message

    Raises:
        SendError: If there are no destinations or SES rejects the request

    Example:
        >>> send_raw_email(b"From: ...", ["jen@example.net"], "info@example.com")
        '0100018c2a7e3f2b-...'
    """
    destinations = list(destinations)
    if not destinations:
        raise SendError("No forwarding destinations resolved; nothing to send")
    if not source:
        raise SendError("Source address cannot be empty")

    logger.info(
        f"Sending raw email via SES: source={source}, "
        f"destinations={destinations}, size={len(raw_message):,} bytes"
    )

    try:
        response = ses_client.send_raw_email(
            Source=source,
            Destinations=destinations,
            RawMessage={'Data': raw_message}
        )
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))
        description = REJECTION_MESSAGES.get(error_code, "Email sending failed")

        logger.error(
            f"SES send failed: error_code={error_code}, "
            f"error_message={error_message}, source={source}"
        )
        raise SendError(f"{description}: {error_code}: {error_message}", error_code) from e
    except BotoCoreError as e:
        logger.error(f"SES send failed: {e}")
        raise SendError(f"Email sending failed: {e}") from e

    message_id = response.get('MessageId', '')
    logger.info(f"Email sent via SES: MessageId={message_id}")
    return message_id
