"""
Email forwarding pipeline - core business logic.

This module handles the end-to-end forwarding of one SES receipt event:
1. Validate the SES event and extract the envelope
2. Resolve original recipients to forwarding destinations
3. Fetch the raw message from S3
4. Rewrite headers so SES accepts the message
5. Send the rewritten message via SES

Stages run strictly in order. The first ForwardingError stops the pipeline and
is returned as ForwardingResult with success=False; nothing is retried.
"""

import logging
import time
from typing import Any, Dict

from .event_validator import validate_event
from .exceptions import ForwardingError
from .header_transformer import transform_headers
from .models import ForwardingConfig, ForwardingResult, PipelineContext, PipelineState, RawMessage
from .recipient_resolver import resolve_recipients
from services import email as email_service
from services import s3 as s3_service
from services import ses as ses_service

logger = logging.getLogger(__name__)


class ForwardingPipeline:
    """
    Runs the forwarding stages for a single SES receipt event.

    The configuration is passed in explicitly; a pipeline keeps no state
    between run() calls.
    """

    def __init__(self, config: ForwardingConfig):
        """
        Initialize forwarding pipeline.

        Args:
            config: Immutable forwarding configuration
        """
        self.config = config

    def run(self, event: Dict[str, Any]) -> ForwardingResult:
        """
        Forward the message referenced by an SES receipt event.

        Args:
            event: Lambda event from the SES receipt rule

        Returns:
            ForwardingResult with state DONE, or FAILED plus the error
        """
        context = PipelineContext()
        start_time = time.time()

        try:
            context.state = PipelineState.VALIDATING
            context.envelope = validate_event(event)
            logger.info(
                f"Processing SES message {context.envelope.message_id} "
                f"from {context.envelope.source or 'unknown sender'} "
                f"for {list(context.envelope.original_recipients)}"
            )

            context.state = PipelineState.RESOLVING
            context.recipients = resolve_recipients(
                context.envelope.original_recipients,
                self.config
            )
            logger.info(
                f"Resolved {len(context.recipients)} destination(s): "
                f"{context.recipients.addresses}"
            )

            context.state = PipelineState.FETCHING
            context.message = self._fetch_message(context.envelope.message_id)

            context.state = PipelineState.TRANSFORMING
            context.forwarded_message = transform_headers(
                context.message,
                self.config,
                context.recipients.original_recipient
            )

            context.state = PipelineState.SENDING
            context.ses_message_id = ses_service.send_raw_email(
                context.forwarded_message.to_bytes(),
                context.recipients.addresses,
                context.recipients.original_recipient
            )

        except ForwardingError as e:
            failed_stage = context.state
            context.state = PipelineState.FAILED
            logger.error(
                f"Forwarding failed during {failed_stage.value}: "
                f"{type(e).__name__}: {e}"
            )

            return ForwardingResult(
                success=False,
                state=context.state,
                message_id=context.envelope.message_id if context.envelope else None,
                recipients=context.recipients.addresses if context.recipients else [],
                failed_stage=failed_stage,
                error=e
            )

        context.state = PipelineState.DONE
        logger.info(
            f"Forwarded {context.envelope.message_id} to {context.recipients.addresses} "
            f"in {time.time() - start_time:.3f}s"
        )

        return ForwardingResult(
            success=True,
            state=context.state,
            message_id=context.envelope.message_id,
            recipients=context.recipients.addresses,
            ses_message_id=context.ses_message_id
        )

    def _fetch_message(self, message_id: str) -> RawMessage:
        """
        Fetch the raw message stored by SES and split it at the header boundary.

        Raises:
            FetchError: If S3 fetch fails
        """
        key = self.config.object_key(message_id)
        logger.info(f"Fetching email from: s3://{self.config.email_bucket}/{key}")

        raw_email = s3_service.fetch_email_from_s3(self.config.email_bucket, key)
        logger.info(f"Fetched {len(raw_email):,} bytes from S3")

        header, body = email_service.split_message(raw_email)
        return RawMessage(header=header, body=body)
