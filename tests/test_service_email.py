"""
Tests for raw email header utilities.
"""

import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from services import email


class TestSplitMessage:
    """Test splitting raw messages at the header/body boundary."""

    def test_split_crlf_message(self):
        """Test blank CRLF line starts the body."""
        raw = b"From: a@example.com\r\nSubject: Hi\r\n\r\nBody line\r\n"

        header, body = email.split_message(raw)

        assert header == b"From: a@example.com\r\nSubject: Hi\r\n"
        assert body == b"\r\nBody line\r\n"

    def test_split_lf_message(self):
        """Test blank LF line starts the body."""
        raw = b"Subject: Hi\n\nBody\n\nMore body\n"

        header, body = email.split_message(raw)

        assert header == b"Subject: Hi\n"
        assert body == b"\nBody\n\nMore body\n"

    def test_split_without_blank_line(self):
        """Test message without a blank line is all header."""
        raw = b"Subject: Hi\r\nFrom: a@example.com"

        header, body = email.split_message(raw)

        assert header == raw
        assert body == b""

    def test_split_leading_blank_line(self):
        """Test message starting with a blank line has an empty header."""
        raw = b"\r\nJust a body"

        header, body = email.split_message(raw)

        assert header == b""
        assert body == raw

    def test_split_whitespace_line_is_not_boundary(self):
        """Test a line holding only spaces is a continuation, not the boundary."""
        raw = b"Subject: Hi\r\n  \r\nX-Other: 1\r\n\r\nBody"

        header, body = email.split_message(raw)

        assert header == b"Subject: Hi\r\n  \r\nX-Other: 1\r\n"
        assert body == b"\r\nBody"

    @pytest.mark.parametrize("raw", [
        b"",
        b"Subject: x\r\n\r\n",
        b"A: 1\nB: 2\n\n\x00\xff binary \r\n\r\n tail",
        b"no headers at all",
    ])
    def test_split_reconstructs_original(self, raw):
        """Test header + body always reproduces the input bytes."""
        header, body = email.split_message(raw)
        assert header + body == raw


class TestParseHeaderBlock:
    """Test tokenizing header blocks into logical fields."""

    def test_parse_simple_fields(self):
        """Test each header line becomes one field."""
        fields = email.parse_header_block("From: a@example.com\r\nSubject: Hi\r\n")

        assert [f.name for f in fields] == ["From", "Subject"]
        assert fields[0].value == "a@example.com"
        assert fields[1].line_ending == "\r\n"

    def test_parse_folded_field(self):
        """Test continuation lines belong to the previous field."""
        text = (
            "DKIM-Signature: v=1; a=rsa-sha256;\r\n"
            "\td=example.org;\r\n"
            " b=abc\r\n"
            "Subject: Hi\r\n"
        )

        fields = email.parse_header_block(text)

        assert len(fields) == 2
        assert fields[0].key == "dkim-signature"
        assert fields[0].raw == "DKIM-Signature: v=1; a=rsa-sha256;\r\n\td=example.org;\r\n b=abc\r\n"
        assert fields[0].value == "v=1; a=rsa-sha256;\r\n\td=example.org;\r\n b=abc"

    def test_parse_value_without_space(self):
        """Test value directly after the colon."""
        fields = email.parse_header_block("subject:Hello\n")

        assert fields[0].value == "Hello"
        assert fields[0].matches("Subject")

    def test_parse_value_keeps_colons(self):
        """Test only the first colon separates name and value."""
        fields = email.parse_header_block("Subject: Re: Fwd: plans\n")

        assert fields[0].name == "Subject"
        assert fields[0].value == "Re: Fwd: plans"

    def test_parse_opaque_lines(self):
        """Test lines that are not headers are kept as opaque fields."""
        text = "  orphan continuation\nFrom sender Mon Jan 1\nX-Test: 1\n"

        fields = email.parse_header_block(text)

        assert fields[0].name is None
        assert fields[1].name is None
        assert fields[0].value == ""
        assert fields[2].name == "X-Test"

    def test_parse_unterminated_last_line(self):
        """Test last field without a line ending."""
        fields = email.parse_header_block("A: 1\nB: 2")

        assert fields[-1].line_ending == ""
        assert fields[-1].value == "2"

    def test_serialize_round_trip(self):
        """Test serializing parsed fields reproduces the text exactly."""
        text = (
            "Received: from mail.example.org\r\n"
            "\tby inbound-smtp.us-east-1.amazonaws.com;\r\n"
            "From: \"Doe, Jane\" <jane@example.org>\r\n"
            "odd line without colon\r\n"
            "Subject: =?UTF-8?B?w6l0w6k=?=\r\n"
        )

        fields = email.parse_header_block(text)

        assert email.serialize_header_block(fields) == text


class TestHeaderEncoding:
    """Test lossless header decoding."""

    def test_non_utf8_bytes_round_trip(self):
        """Test invalid UTF-8 survives decode/encode unchanged."""
        header = b"Subject: caf\xe9 \xff\r\n"

        text = email.decode_header_block(header)

        assert email.encode_header_block(text) == header

    def test_detect_line_ending(self):
        """Test line ending detection and CRLF default."""
        assert email.detect_line_ending(email.parse_header_block("A: 1\nB: 2\n")) == "\n"
        assert email.detect_line_ending(email.parse_header_block("A: 1")) == "\r\n"
        assert email.detect_line_ending([]) == "\r\n"


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
