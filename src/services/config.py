"""
Delivery configuration resolution.

Provider settings are resolved with the following priority:
1. Environment variables (SENDGRID_API_KEY, SENDGRID_SENDER_EMAIL)
2. Legacy configuration document stored in SSM Parameter Store
   (keys sendgrid.apikey, sendgrid.senderemail)
3. Fixed default (sender email only; the API key has no default)

The legacy document is cached in memory for warm Lambda invocations with TTL.
Environment variables are read on every call.
"""

import json
import logging
import os
import time
from typing import Any, Dict, Optional, Tuple

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.errors import ConfigurationError
from domain.models import DeliveryConfiguration

logger = logging.getLogger(__name__)

API_KEY_ENV = 'SENDGRID_API_KEY'
SENDER_EMAIL_ENV = 'SENDGRID_SENDER_EMAIL'
API_KEY_LEGACY_KEY = 'sendgrid.apikey'
SENDER_EMAIL_LEGACY_KEY = 'sendgrid.senderemail'

# Must be verified in SendGrid
DEFAULT_SENDER_EMAIL = 'noreply@comnecter.com'
SENDER_NAME = 'Comnecter'

# Cache TTL in seconds (default: 5 minutes)
CACHE_TTL_SECONDS = int(os.environ.get('CONFIG_CACHE_TTL', '300'))

# Module-level cache: (legacy_document, timestamp)
_legacy_cache: Optional[Tuple[Dict[str, Any], float]] = None

ssm_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=5,
    read_timeout=10
)

# Initialize SSM client at module level (thread-safe, reused)
ssm_client = boto3.client('ssm', config=ssm_config)


def _read_env(name: str) -> Optional[str]:
    value = os.environ.get(name, '').strip()
    return value or None


def _load_legacy_document() -> Optional[Dict[str, Any]]:
    """
    Fetch the legacy configuration document from SSM.

    Returns:
        dict: Parsed document ({} if no parameter is configured),
        or None if the parameter could not be read or parsed
    """
    parameter_name = os.environ.get('LEGACY_CONFIG_PARAMETER')
    if not parameter_name:
        return {}

    logger.info(f"Loading legacy config from SSM parameter: {parameter_name}")
    try:
        response = ssm_client.get_parameter(Name=parameter_name, WithDecryption=True)
        document = json.loads(response['Parameter']['Value'])
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        logger.warning(f"Error reading legacy config ({error_code}): {e}")
        return None
    except BotoCoreError as e:
        logger.warning(f"Error reading legacy config: {e}")
        return None
    except (KeyError, ValueError) as e:
        logger.warning(f"Legacy config parameter is not valid JSON: {e}")
        return None

    if not isinstance(document, dict):
        logger.warning("Legacy config parameter is not a JSON object, ignoring")
        return None

    return document


def get_legacy_config(use_cache: bool = True) -> Dict[str, Any]:
    """
    Get the legacy configuration document with caching.

    Args:
        use_cache: Use cached version if available and within TTL

    Returns:
        dict: Legacy configuration document (may be empty)
    """
    global _legacy_cache
    current_time = time.time()

    if use_cache and _legacy_cache is not None:
        cached_document, cached_time = _legacy_cache
        if current_time - cached_time < CACHE_TTL_SECONDS:
            return cached_document
        logger.info("Legacy config cache expired, reloading...")

    document = _load_legacy_document()
    if document is None:
        # Failed reads are not cached; the next call retries SSM
        return {}

    _legacy_cache = (document, current_time)
    return document


def get_legacy_value(dotted_key: str) -> Optional[str]:
    """
    Look up a dotted key (e.g. "sendgrid.apikey") in the legacy document.

    Returns:
        str value, or None if any path segment is missing or the value is empty
    """
    node: Any = get_legacy_config()
    for part in dotted_key.split('.'):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]

    if node is None or isinstance(node, (dict, list)):
        return None
    value = str(node).strip()
    return value or None


def resolve_api_key() -> str:
    """
    Resolve the SendGrid API key.

    Raises:
        ConfigurationError: If neither the environment nor legacy config has it
    """
    api_key = _read_env(API_KEY_ENV)
    if api_key:
        return api_key

    api_key = get_legacy_value(API_KEY_LEGACY_KEY)
    if api_key:
        return api_key

    raise ConfigurationError(
        f"missing api key: set the {API_KEY_ENV} environment variable "
        f"or '{API_KEY_LEGACY_KEY}' in the legacy config"
    )


def resolve_sender_email() -> str:
    """Resolve the sender address. Never fails."""
    sender_email = _read_env(SENDER_EMAIL_ENV)
    if sender_email:
        logger.info(f"Using {SENDER_EMAIL_ENV} from env: {sender_email}")
        return sender_email

    sender_email = get_legacy_value(SENDER_EMAIL_LEGACY_KEY)
    if sender_email:
        logger.info(f"Using senderemail from legacy config: {sender_email}")
        return sender_email

    logger.info(f"Using default sender email: {DEFAULT_SENDER_EMAIL}")
    return DEFAULT_SENDER_EMAIL


def resolve_delivery_configuration() -> DeliveryConfiguration:
    """
    Resolve provider credentials and sender identity for one attempt.

    Returns:
        DeliveryConfiguration

    Raises:
        ConfigurationError: If the API key cannot be resolved
    """
    sender_email = resolve_sender_email()
    api_key = resolve_api_key()
    logger.info(f"API key retrieved, length: {len(api_key)}")
    return DeliveryConfiguration(
        api_key=api_key,
        sender_email=sender_email,
        sender_name=SENDER_NAME
    )


def clear_cache() -> None:
    """
    Clear the legacy configuration cache.

    Useful for testing or forcing a reload from SSM.
    """
    global _legacy_cache
    _legacy_cache = None
    logger.info("Legacy config cache cleared")
