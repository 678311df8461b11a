"""
DynamoDB operations for verification code records.

This module decodes stream images and writes delivery outcomes back onto
records in the verification codes table.
"""

import logging
import os
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.types import TypeDeserializer, TypeSerializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from domain.errors import PersistenceError
from domain.models import DeliveryOutcome

logger = logging.getLogger(__name__)

VERIFICATION_CODES_TABLE = os.environ.get('VERIFICATION_CODES_TABLE', 'verification_codes')

# Configure DynamoDB client with timeouts to prevent infinite hangs
dynamodb_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=5,
    read_timeout=10
)

# Initialize DynamoDB client at module level (thread-safe, reused across invocations)
dynamodb_client = boto3.client('dynamodb', config=dynamodb_config)

_deserializer = TypeDeserializer()
_serializer = TypeSerializer()


def deserialize_image(image: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a stream image in DynamoDB JSON to plain Python values.

    Args:
        image: e.g. {"email": {"S": "a@x.com"}, "code": {"S": "123456"}}

    Returns:
        dict: e.g. {"email": "a@x.com", "code": "123456"}
    """
    return {key: _deserializer.deserialize(value) for key, value in (image or {}).items()}


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def record_outcome(
    email: str,
    outcome: DeliveryOutcome,
    table_name: Optional[str] = None,
    key: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Write a delivery outcome onto the verification code record.

    Performs exactly one conditional update. The condition rejects the write
    if the record no longer exists or emailSent is already set, so records are
    never created here and an outcome is never recorded twice.

    Args:
        email: Recipient address (default key, used in logs)
        outcome: Outcome to persist
        table_name: Table override (default: VERIFICATION_CODES_TABLE)
        key: Record key in DynamoDB JSON, e.g. the stream record's Keys
             (default: {"email": {"S": email}})

    Returns:
        True if the record was updated, False if the write failed

    Note:
        Failures are logged as PersistenceError and never raised.
    """
    table = table_name or VERIFICATION_CODES_TABLE
    values = outcome.to_update_values(utc_timestamp())

    key = key or {'email': {'S': email}}
    key_condition = ' AND '.join(f"attribute_exists(#{name})" for name in key)

    names = {f"#{name}": name for name in list(key) + list(values)}
    update_expression = 'SET ' + ', '.join(f"#{name} = :{name}" for name in values)
    expression_values = {f":{name}": _serializer.serialize(value) for name, value in values.items()}

    try:
        dynamodb_client.update_item(
            TableName=table,
            Key=key,
            UpdateExpression=update_expression,
            ConditionExpression=f"{key_condition} AND attribute_not_exists(#emailSent)",
            ExpressionAttributeNames=names,
            ExpressionAttributeValues=expression_values
        )
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        if error_code == 'ConditionalCheckFailedException':
            message = f"Record for {email} is missing or already has an outcome, not writing"
        else:
            error_message = e.response.get('Error', {}).get('Message', str(e))
            message = (
                f"Failed to record outcome: table={table}, email={email}, "
                f"error_code={error_code}, error_message={error_message}"
            )
        _log_persistence_error(PersistenceError(message, email))
        return False
    except BotoCoreError as e:
        _log_persistence_error(PersistenceError(f"Failed to record outcome for {email}: {e}", email))
        return False

    logger.info(f"Record updated: email={email}, emailSent={outcome.email_sent}")
    return True


def _log_persistence_error(error: PersistenceError) -> None:
    logger.error(f"PersistenceError: {error}")
