"""
Pytest configuration and fixtures for all tests.
"""

import json
import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('EMAIL_BUCKET', 'ses-emails-123456789012-test')
os.environ.setdefault('EMAIL_KEY_PREFIX', 'incoming/')
os.environ.setdefault('FORWARD_MAPPING', json.dumps({
    'info@example.com': ['john@example.net', 'jen@example.net'],
    '@example.com': ['john@example.net'],
}))
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')


@pytest.fixture
def ses_event():
    """Load sample SES receipt event from test data."""
    with open(os.path.join(os.path.dirname(__file__), 'events', 'ses-event.json')) as f:
        return json.load(f)


@pytest.fixture
def sample_email():
    """Sample raw email with folded and signed headers."""
    return (
        b"Return-Path: <jane@example.org>\r\n"
        b"DKIM-Signature: v=1; a=rsa-sha256; d=example.org; s=mail;\r\n"
        b"\th=from:to:subject; bh=47DEQpj8HBSa+/TImW+5JCeuQeRkm5NMpJWZG3hSuFU=;\r\n"
        b"\tb=dzdVyOfAKCdLXdJOc9G2q8LoXSlEniSbav+yuU4zGeeruD00lszZVoG4ZHRNiYzR\r\n"
        b"From: Jane Doe <jane@example.org>\r\n"
        b"To: info@example.com\r\n"
        b"Subject: Quarterly report\r\n"
        b"Message-ID: <CAF=abc123@mail.example.org>\r\n"
        b"MIME-Version: 1.0\r\n"
        b"Content-Type: text/plain; charset=\"UTF-8\"\r\n"
        b"\r\n"
        b"Hi,\r\n"
        b"\r\n"
        b"Please find the numbers below.\r\n"
    )
