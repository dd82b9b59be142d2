"""
Data models for the email forwarding domain.

These type-safe data structures define clear contracts between pipeline stages.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import List, Mapping, Optional, Tuple

from .exceptions import ForwardingError


@dataclass(frozen=True)
class ForwardingConfig:
    """
    Immutable forwarding configuration, loaded once per process.

    Attributes:
        email_bucket: S3 bucket where SES stores received messages
        email_key_prefix: S3 key prefix (with trailing slash) for messages
        forward_mapping: Lowercased lookup key -> ordered destination addresses
        from_email: Verified sender address used in the rewritten From header
        subject_prefix: Literal text prepended to every Subject
        to_email: Literal value that replaces every To header
        allow_plus_sign: Ignore "+suffix" in the local part when matching
    """
    email_bucket: str
    email_key_prefix: str = ''
    forward_mapping: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    from_email: Optional[str] = None
    subject_prefix: str = ''
    to_email: Optional[str] = None
    allow_plus_sign: bool = False

    def __post_init__(self):
        # Read-only view; destination lists become tuples
        frozen = {key: tuple(destinations) for key, destinations in self.forward_mapping.items()}
        object.__setattr__(self, 'forward_mapping', MappingProxyType(frozen))

    def object_key(self, message_id: str) -> str:
        """S3 object key under which SES stored the given message."""
        return f"{self.email_key_prefix}{message_id}"


@dataclass(frozen=True)
class InboundEnvelope:
    """
    Message identity and recipients taken from an SES receipt event.

    Attributes:
        message_id: SES message identifier (also the S3 object name)
        original_recipients: Addresses this invocation is responsible for, in event order
        source: Envelope sender reported by SES (logged with the message id)
    """
    message_id: str
    original_recipients: Tuple[str, ...]
    source: Optional[str] = None


class MatchTier(Enum):
    """Forward mapping tiers, highest precedence first."""
    EXACT = 'exact'
    DOMAIN = 'domain'
    MAILBOX = 'mailbox'
    CATCH_ALL = 'catch-all'


@dataclass
class ResolvedRecipients:
    """
    Destinations computed from the original recipients.

    Attributes:
        addresses: Destination addresses, first-occurrence order, no duplicates
        original_recipient: Original address used as the sending identity
        matches: Original address -> tier that matched it (unmatched omitted)
    """
    addresses: List[str]
    original_recipient: str
    matches: dict = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.addresses)


@dataclass(frozen=True)
class RawMessage:
    """
    Raw message bytes split at the header/body boundary.

    header + body always reconstructs the bytes the message was built from.
    """
    header: bytes
    body: bytes

    def to_bytes(self) -> bytes:
        return self.header + self.body

    def __len__(self) -> int:
        return len(self.header) + len(self.body)


class PipelineState(Enum):
    """States of a single forwarding invocation."""
    VALIDATING = 'validating'
    RESOLVING = 'resolving'
    FETCHING = 'fetching'
    TRANSFORMING = 'transforming'
    SENDING = 'sending'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class PipelineContext:
    """
    Per-invocation record of what each stage produced.

    Only the pipeline runner writes to it; stages receive their inputs
    explicitly and return their outputs.
    """
    state: PipelineState = PipelineState.VALIDATING
    envelope: Optional[InboundEnvelope] = None
    recipients: Optional[ResolvedRecipients] = None
    message: Optional[RawMessage] = None
    forwarded_message: Optional[RawMessage] = None
    ses_message_id: Optional[str] = None


@dataclass
class ForwardingResult:
    """
    Result of one forwarding invocation.

    Stages raise ForwardingError; the pipeline turns the first one into a
    failed result so callers get one success/failure value per event.

    Attributes:
        success: Whether the message was forwarded
        state: Final pipeline state (DONE or FAILED)
        message_id: SES message identifier (None if the event was invalid)
        recipients: Destinations the message was (or would have been) sent to
        ses_message_id: MessageId returned by SES on success
        failed_stage: Stage that was running when the pipeline failed
        error: The ForwardingError that aborted the pipeline
    """
    success: bool
    state: PipelineState
    message_id: Optional[str] = None
    recipients: List[str] = field(default_factory=list)
    ses_message_id: Optional[str] = None
    failed_stage: Optional[PipelineState] = None
    error: Optional[ForwardingError] = None

    @property
    def error_kind(self) -> Optional[str]:
        """Name of the error class, e.g. 'FetchError'."""
        return type(self.error).__name__ if self.error else None

    @property
    def error_message(self) -> Optional[str]:
        return str(self.error) if self.error else None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return f"ForwardingResult(success=True, message_id={self.message_id})"
        else:
            return (
                f"ForwardingResult(success=False, message_id={self.message_id}, "
                f"error={self.error_kind}: {self.error_message})"
            )
