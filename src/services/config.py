"""
Forwarding configuration loading.

Configuration is read once per process from environment variables. The
forward mapping is loaded with the following priority:
1. FORWARD_MAPPING environment variable (inline JSON)
2. JSON file named by FORWARD_MAPPING_FILE (default: config/forward_mapping.json
   packaged with the Lambda)

Mapping format:
    {
        "info@example.com": ["john@example.net", "jen@example.net"],
        "@example.com": ["john@example.net"],
        "abuse": ["abuse@example.net"],
        "@": ["catchall@example.net"]
    }
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from domain.exceptions import ConfigurationError
from domain.models import ForwardingConfig

logger = logging.getLogger(__name__)

# Path to config directory (relative to this file)
# src/services/config.py -> src/config/
# In Lambda: /var/task/config/
CONFIG_DIR = Path(__file__).parent.parent / 'config'
DEFAULT_MAPPING_FILE = CONFIG_DIR / 'forward_mapping.json'

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _parse_bool(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in TRUE_VALUES


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or '').strip()
    return value or None


def parse_forward_mapping(data: Any) -> Dict[str, Tuple[str, ...]]:
    """
    Validate and normalize a decoded forward mapping.

    Keys are lowercased; destination lists keep their order with duplicates
    removed. Keys that collide after lowercasing are merged.

    Args:
        data: Decoded JSON value

    Returns:
        Dict of lookup key -> tuple of destination addresses

    Raises:
        ConfigurationError: If the mapping is not an object of non-empty
            address lists
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Forward mapping must be a JSON object, got {type(data).__name__}"
        )

    mapping: Dict[str, Tuple[str, ...]] = {}
    for key, destinations in data.items():
        if not isinstance(key, str) or not key.strip():
            raise ConfigurationError("Forward mapping keys cannot be empty")

        if (
            not isinstance(destinations, list)
            or not destinations
            or not all(isinstance(d, str) and d.strip() for d in destinations)
        ):
            raise ConfigurationError(
                f"Forward mapping for {key!r} must be a non-empty list of addresses"
            )

        normalized_key = key.strip().lower()
        merged = list(mapping.get(normalized_key, ()))
        for destination in destinations:
            destination = destination.strip()
            if destination not in merged:
                merged.append(destination)
        mapping[normalized_key] = tuple(merged)

    return mapping


def _load_mapping_from_file(path: Path) -> Any:
    logger.info(f"Loading forward mapping from file: {path}")
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Forward mapping file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Forward mapping file {path} is not valid JSON: {e}") from e


def load_forward_mapping(environ: Mapping[str, str]) -> Dict[str, Tuple[str, ...]]:
    """
    Load the forward mapping from the environment or the mapping file.

    Raises:
        ConfigurationError: If the mapping cannot be read or is invalid
    """
    inline = environ.get('FORWARD_MAPPING')
    if inline:
        logger.info("Loading forward mapping from FORWARD_MAPPING environment variable")
        try:
            data = json.loads(inline)
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"FORWARD_MAPPING is not valid JSON: {e}") from e
    else:
        path = Path(environ.get('FORWARD_MAPPING_FILE') or DEFAULT_MAPPING_FILE)
        data = _load_mapping_from_file(path)

    return parse_forward_mapping(data)


def load_config(environ: Optional[Mapping[str, str]] = None) -> ForwardingConfig:
    """
    Build the forwarding configuration from environment variables.

    Args:
        environ: Environment mapping (defaults to os.environ)

    Returns:
        ForwardingConfig: Immutable configuration

    Raises:
        ConfigurationError: If EMAIL_BUCKET is missing or the mapping is invalid

    Example:
        >>> config = load_config({
        ...     'EMAIL_BUCKET': 'my-ses-bucket',
        ...     'FORWARD_MAPPING': '{"@example.com": ["me@example.net"]}'
        ... })
        >>> config.forward_mapping['@example.com']
        ('me@example.net',)
    """
    if environ is None:
        environ = os.environ

    email_bucket = _optional(environ.get('EMAIL_BUCKET'))
    if not email_bucket:
        raise ConfigurationError(
            "EMAIL_BUCKET environment variable is required but not set. "
            "Please configure this in your SAM template or Lambda environment."
        )

    config = ForwardingConfig(
        email_bucket=email_bucket,
        email_key_prefix=environ.get('EMAIL_KEY_PREFIX', ''),
        forward_mapping=load_forward_mapping(environ),
        from_email=_optional(environ.get('FROM_EMAIL')),
        subject_prefix=environ.get('SUBJECT_PREFIX', ''),
        to_email=_optional(environ.get('TO_EMAIL')),
        allow_plus_sign=_parse_bool(environ.get('ALLOW_PLUS_SIGN')),
    )

    logger.info(
        f"Forwarding configured: bucket={config.email_bucket}, "
        f"prefix={config.email_key_prefix!r}, rules={len(config.forward_mapping)}, "
        f"from_email={config.from_email}, allow_plus_sign={config.allow_plus_sign}"
    )
    return config
