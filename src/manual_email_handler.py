import json
import os
import logging
from typing import Dict, Any

from domain.errors import CallableError, ConfigurationError, InternalError, InvalidArgumentError
from domain.verification_processor import VerificationEmailProcessor
from services import config as config_service

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')

RESPONSE_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*'
}

verification_processor = VerificationEmailProcessor()


def _parse_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extract the request payload from the invocation event.

    Supports direct invocation ({"email", "code"}), API Gateway proxy events
    (JSON string in "body") and callable envelopes ({"data": {...}}).
    """
    if not isinstance(event, dict):
        raise InvalidArgumentError('Request body must be a JSON object')

    payload = event
    if isinstance(event.get('body'), str):
        try:
            payload = json.loads(event['body'] or '{}')
        except ValueError:
            raise InvalidArgumentError('Request body must be valid JSON')

    if isinstance(payload, dict) and isinstance(payload.get('data'), dict):
        payload = payload['data']

    if not isinstance(payload, dict):
        raise InvalidArgumentError('Request body must be a JSON object')
    return payload


def _error_response(error: CallableError) -> Dict[str, Any]:
    return {
        'statusCode': error.status_code,
        'headers': RESPONSE_HEADERS,
        'body': json.dumps(error.to_dict())
    }


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler to send a verification email on demand.

    Fallback for clients when the stream-triggered email did not arrive.
    Nothing is written to the verification codes table.

    Expected event format:
    {
        "email": "user@example.com",
        "code": "123456"
    }
    """
    logger.info(f"Environment: {ENVIRONMENT}")

    try:
        request = _parse_request(event or {})
        result = verification_processor.send_manual(request.get('email'), request.get('code'))

        return {
            'statusCode': 200,
            'headers': RESPONSE_HEADERS,
            'body': json.dumps(result)
        }

    except CallableError as ce:
        log = logger.warning if ce.code == InvalidArgumentError.code else logger.error
        log(f"Manual send failed ({ce.code}): {ce.message}")
        return _error_response(ce)

    except Exception as e:
        logger.error(f"Error sending verification email: {str(e)}", exc_info=True)
        return _error_response(InternalError('Failed to send email', details=str(e)))


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    try:
        config_service.resolve_api_key()
        api_key_configured = True
    except ConfigurationError:
        api_key_configured = False

    return {
        'statusCode': 200,
        'body': json.dumps({
            'status': 'healthy',
            'environment': ENVIRONMENT,
            'apiKeyConfigured': api_key_configured
        })
    }
