"""
S3 operations for the forwarding pipeline.

This module reads the raw messages that the SES receipt rule stores in S3.
"""

import logging

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.exceptions import FetchError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    signature_version='s3v4',
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,  # 10 seconds to establish connection
    read_timeout=60      # 60 seconds max for reading response
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)
logger.info("S3 client initialized with timeouts: connect=10s, read=60s, max_attempts=1")


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key (prefix + SES message id)

    Returns:
        bytes: The raw email content as bytes

    Raises:
        FetchError: If the object or bucket does not exist, or S3 fails

    Example:
        >>> email_bytes = fetch_email_from_s3(
        ...     bucket="my-ses-bucket",
        ...     key="emails/o3vrnil0e2ic28trm7dfhrc2v0clambda4nbp0g1"
        ... )
        >>> print(len(email_bytes))
        12345
    """
    if not bucket:
        raise FetchError("S3 bucket name cannot be empty")
    if not key:
        raise FetchError("S3 object key cannot be empty")

    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise FetchError(f"Email file not found in S3: {key}", error_code) from e
        elif error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise FetchError(f"S3 bucket not found: {bucket}", error_code) from e
        else:
            logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
            raise FetchError(
                f"Failed to load message from S3 s3://{bucket}/{key}: {error_code or e}",
                error_code or None
            ) from e
    except BotoCoreError as e:
        logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
        raise FetchError(f"Failed to load message from S3 s3://{bucket}/{key}: {e}") from e
