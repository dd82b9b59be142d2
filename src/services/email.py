"""
Raw email header utilities for the forwarding pipeline.

This module splits a raw RFC 822 message into its header block and body, and
tokenizes the header block into logical fields (a header line plus its folded
continuation lines). It deliberately avoids the MIME parser: the body is never
decoded and every untouched header keeps its exact bytes.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Header text is decoded with surrogateescape so non-UTF-8 bytes round-trip
HEADER_ENCODING = 'utf-8'
HEADER_ERRORS = 'surrogateescape'

DEFAULT_LINE_ENDING = '\r\n'

_FIELD_NAME_RE = re.compile(r'^([^\s:][^:]*):')
_LINE_ENDING_RE = re.compile(r'\r?\n$')


@dataclass
class HeaderField:
    """
    One logical header: the first physical line plus any folded continuations.

    Attributes:
        raw: Exact text of the field, including line endings
        name: Header name as written (None for lines that are not headers)
    """
    raw: str
    name: Optional[str] = None

    @property
    def key(self) -> str:
        """Case-insensitive name used for matching ('' for opaque lines)."""
        return self.name.strip().lower() if self.name else ''

    @property
    def line_ending(self) -> str:
        """Line ending of the last physical line ('' if unterminated)."""
        match = _LINE_ENDING_RE.search(self.raw)
        return match.group(0) if match else ''

    @property
    def value(self) -> str:
        """
        Field value verbatim, including folded continuation lines.

        One optional space or tab after the colon is dropped and the final
        line ending is excluded.
        """
        if self.name is None:
            return ''
        text = self.raw[len(self.name) + 1:]
        if text[:1] in (' ', '\t'):
            text = text[1:]
        ending = self.line_ending
        return text[:len(text) - len(ending)] if ending else text

    def matches(self, *names: str) -> bool:
        """Check whether the field name equals any of names, ignoring case."""
        return self.key in {n.lower() for n in names}


def split_message(raw: bytes) -> Tuple[bytes, bytes]:
    """
    Split raw message bytes at the first blank line.

    Args:
        raw: Complete raw message

    Returns:
        Tuple (header, body). The blank line belongs to body, so
        header + body == raw. Without a blank line the whole message is
        header and body is empty.

    Example:
        >>> split_message(b"Subject: Hi\\r\\n\\r\\nBody")
        (b'Subject: Hi\\r\\n', b'\\r\\nBody')
    """
    position = 0
    while position < len(raw):
        newline = raw.find(b'\n', position)
        line_end = len(raw) if newline == -1 else newline + 1
        line = raw[position:line_end]
        if newline != -1 and line in (b'\n', b'\r\n'):
            return raw[:position], raw[position:]
        position = line_end

    return raw, b''


def physical_lines(text: str) -> List[str]:
    """Split text into lines, keeping each line's ending."""
    lines = [line + '\n' for line in text.split('\n')]
    lines[-1] = lines[-1][:-1]
    if not lines[-1]:
        lines.pop()
    return lines


def parse_header_block(text: str) -> List[HeaderField]:
    """
    Tokenize a header block into logical header fields.

    A physical line starting with a space or tab continues the previous
    field. Lines that are not "Name: value" headers become opaque fields
    (name None) so they pass through serialization unchanged.

    Args:
        text: Decoded header block

    Returns:
        List of HeaderField in original order
    """
    fields: List[HeaderField] = []

    for line in physical_lines(text):
        if line[:1] in (' ', '\t') and fields:
            fields[-1].raw += line
            continue

        match = _FIELD_NAME_RE.match(line)
        fields.append(HeaderField(raw=line, name=match.group(1) if match else None))

    return fields


def serialize_header_block(fields: List[HeaderField]) -> str:
    """Join header fields back into header block text."""
    return ''.join(field.raw for field in fields)


def decode_header_block(header: bytes) -> str:
    """Decode header bytes so that encoding them again is lossless."""
    return header.decode(HEADER_ENCODING, errors=HEADER_ERRORS)


def encode_header_block(text: str) -> bytes:
    """Encode header text produced by decode_header_block."""
    return text.encode(HEADER_ENCODING, errors=HEADER_ERRORS)


def detect_line_ending(fields: List[HeaderField]) -> str:
    """
    Return the line ending used by the header block.

    Falls back to CRLF when no field is terminated.
    """
    for field in fields:
        ending = _LINE_ENDING_RE.search(physical_lines(field.raw)[0])
        if ending:
            return ending.group(0)
    return DEFAULT_LINE_ENDING
