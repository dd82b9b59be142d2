"""
Tests for SES receipt event validation.
"""

import copy
import pytest
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from domain.event_validator import validate_event
from domain.exceptions import InvalidEventError


class TestValidateEvent:
    """Test validation and envelope extraction."""

    def test_valid_event(self, ses_event):
        """Test envelope is extracted from a valid SES event."""
        envelope = validate_event(ses_event)

        assert envelope.message_id == "o3vrnil0e2ic28trm7dfhrc2v0clambda4nbp0g1"
        assert envelope.original_recipients == ("info@example.com",)
        assert envelope.source == "jane@example.org"

    def test_recipient_order_preserved(self, ses_event):
        recipients = ["b@example.com", "a@example.com", "c@example.com"]
        ses_event['Records'][0]['ses']['receipt']['recipients'] = recipients

        envelope = validate_event(ses_event)

        assert list(envelope.original_recipients) == recipients

    def test_zero_records(self):
        with pytest.raises(InvalidEventError, match="exactly one record"):
            validate_event({"Records": []})

    def test_two_records(self, ses_event):
        record = ses_event['Records'][0]
        event = {"Records": [record, copy.deepcopy(record)]}

        with pytest.raises(InvalidEventError, match="exactly one record"):
            validate_event(event)

    def test_missing_records(self):
        with pytest.raises(InvalidEventError):
            validate_event({})

    def test_not_an_object(self):
        with pytest.raises(InvalidEventError):
            validate_event(None)

    def test_wrong_event_source(self, ses_event):
        ses_event['Records'][0]['eventSource'] = 'aws:sqs'

        with pytest.raises(InvalidEventError, match="eventSource"):
            validate_event(ses_event)

    def test_wrong_event_version(self, ses_event):
        ses_event['Records'][0]['eventVersion'] = '2.0'

        with pytest.raises(InvalidEventError, match="eventVersion"):
            validate_event(ses_event)

    def test_missing_receipt(self, ses_event):
        del ses_event['Records'][0]['ses']['receipt']

        with pytest.raises(InvalidEventError, match="'mail' or 'receipt'"):
            validate_event(ses_event)

    def test_missing_message_id(self, ses_event):
        del ses_event['Records'][0]['ses']['mail']['messageId']

        with pytest.raises(InvalidEventError, match="messageId"):
            validate_event(ses_event)

    @pytest.mark.parametrize("recipients", [None, [], "info@example.com", ["ok@example.com", 42]])
    def test_invalid_recipients(self, ses_event, recipients):
        ses_event['Records'][0]['ses']['receipt']['recipients'] = recipients

        with pytest.raises(InvalidEventError, match="recipients"):
            validate_event(ses_event)


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
