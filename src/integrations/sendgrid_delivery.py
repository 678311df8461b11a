"""
SendGrid Delivery Module

This module sends composed verification emails through the SendGrid v3
Mail Send API.

Usage:
    from integrations import sendgrid_delivery

    result = sendgrid_delivery.send_email(api_key, message)
    print(result.status_code)  # 202

Policy: exactly one HTTP request per call. No retries and no client-side
timeout; the Lambda deadline bounds the call.
"""

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from domain.errors import ProviderError
from domain.models import EmailMessage

logger = logging.getLogger(__name__)

SENDGRID_API_URL = os.environ.get('SENDGRID_API_URL', 'https://api.sendgrid.com/v3/mail/send')

# Module-level client (connection pool reused across warm invocations)
http_client = httpx.Client(timeout=None)


@dataclass
class SendResult:
    """Accepted delivery attempt."""
    status_code: int
    message_id: Optional[str] = None


def _parse_errors(response: httpx.Response) -> List[Dict[str, Any]]:
    """Extract the SendGrid errors list from a failed response, if any."""
    try:
        body = response.json()
    except ValueError:
        return []
    if not isinstance(body, dict):
        return []
    errors = body.get('errors') or []
    return [e for e in errors if isinstance(e, dict)]


def send_email(api_key: str, message: EmailMessage) -> SendResult:
    """
    Perform a single delivery attempt.

    Args:
        api_key: SendGrid API key
        message: Composed email

    Returns:
        SendResult: Status code and SendGrid message id

    Raises:
        ProviderError: If SendGrid rejects the request or the request fails
    """
    logger.info(f"Sending email to: {message.to_email}, from: {message.from_email}")

    try:
        response = http_client.post(
            SENDGRID_API_URL,
            headers={
                'Authorization': f"Bearer {api_key}",
                'Content-Type': 'application/json',
            },
            json=message.to_sendgrid_payload()
        )
    except httpx.HTTPError as e:
        logger.error(f"SendGrid request failed for {message.to_email}: {e.__class__.__name__}: {e}")
        raise ProviderError(str(e) or e.__class__.__name__)

    if response.is_success:
        message_id = response.headers.get('X-Message-Id')
        logger.info(
            f"SendGrid accepted email to {message.to_email}: "
            f"status={response.status_code}, message_id={message_id}"
        )
        return SendResult(status_code=response.status_code, message_id=message_id)

    errors = _parse_errors(response)
    logger.error(f"SendGrid error response: status={response.status_code}, body={response.text[:1000]}")
    for err in errors:
        logger.error(f"  - {err.get('message') or 'Unknown error'} (field: {err.get('field') or 'N/A'})")

    first = errors[0] if errors else {}
    raise ProviderError(
        first.get('message') or f"HTTP {response.status_code}",
        field=first.get('field'),
        status_code=response.status_code,
        errors=errors
    )
