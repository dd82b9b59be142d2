"""
Utility functions for Lambda handler operations.

This package contains reusable service functions for raw email header
handling, configuration loading, and the S3 and SES interactions.
"""

__all__ = ['config', 'email', 's3', 'ses']
