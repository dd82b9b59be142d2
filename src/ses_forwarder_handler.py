"""
AWS Lambda handler for forwarding email received by SES.

Thin orchestration layer that delegates to ForwardingPipeline.
Policy: no retries inside the function. A failed forward fails the
invocation so the SES/Lambda redelivery policy decides what happens next.
"""

import logging
import os
from typing import Dict, Any

from domain.exceptions import ConfigurationError
from domain.pipeline import ForwardingPipeline
from services.config import load_config


def _resolve_log_level(name: str) -> int:
    """Map a LOG_LEVEL name to a logging level, falling back to INFO."""
    level = logging.getLevelName((name or '').strip().upper())
    return level if isinstance(level, int) else logging.INFO


# Configure logging
logger = logging.getLogger()
logger.setLevel(_resolve_log_level(os.environ.get('LOG_LEVEL', 'INFO')))

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Load configuration once at module level (read-only, reused across invocations)
try:
    config = load_config()
except ConfigurationError as e:
    logger.error(f"Module initialization failed: {e}")
    raise


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Forward one inbound SES message.

    Args:
        event: Lambda event with a single SES receipt record
        context: Lambda context

    Returns:
        Dict with status, SES message id and destinations

    Raises:
        ForwardingError: If any stage fails (InvalidEventError, FetchError, SendError)
    """
    logger.info("SES Forwarder - Started")

    result = ForwardingPipeline(config).run(event)

    if not result.success:
        logger.error(
            f"Forwarding failed for message {result.message_id}: "
            f"{result.error_kind}: {result.error_message}"
        )
        raise result.error

    logger.info(f"Process finished successfully: {result.message_id}")
    return {
        'status': 'Success',
        'messageId': result.message_id,
        'sesMessageId': result.ses_message_id,
        'recipients': result.recipients
    }
