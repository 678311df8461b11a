"""
Verification email composition.

Builds the subject, plain-text and HTML bodies for a verification code.
Output depends only on the inputs; the footer year is the one time-varying
value and can be passed explicitly.
"""

import html
import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from domain.models import EmailMessage

logger = logging.getLogger(__name__)

SUBJECT = 'Your Comnecter Verification Code'
DEFAULT_SENDER_NAME = 'Comnecter'


class MessageLayout(Enum):
    """Message layouts: branded document (reactive) or short fragment (manual)."""
    STANDARD = 'standard'
    COMPACT = 'compact'


STANDARD_TEXT_TEMPLATE = (
    "Your Comnecter verification code is: {code}\n\n"
    "This code will expire in 5 minutes.\n\n"
    "If you didn't request this code, please ignore this email."
)

COMPACT_TEXT_TEMPLATE = (
    "Your Comnecter verification code is: {code}\n\n"
    "This code will expire in 5 minutes."
)

STANDARD_HTML_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Verification Code</title>
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif; background-color: #f5f5f5; margin: 0; padding: 20px;">
  <div style="max-width: 600px; margin: 0 auto; background-color: #ffffff; border-radius: 8px; padding: 40px; box-shadow: 0 2px 4px rgba(0,0,0,0.1);">
    <div style="text-align: center; margin-bottom: 30px;">
      <h1 style="color: #6366f1; margin: 0; font-size: 28px;">Comnecter</h1>
      <p style="color: #6b7280; margin-top: 8px; font-size: 14px;">Your verification code</p>
    </div>
    <div style="background-color: #f9fafb; border-radius: 8px; padding: 30px; text-align: center; margin: 30px 0;">
      <p style="color: #374151; font-size: 14px; margin: 0 0 10px 0;">Your verification code is:</p>
      <div style="background-color: #ffffff; border: 2px dashed #6366f1; border-radius: 8px; padding: 20px; margin: 20px 0;">
        <p style="font-size: 36px; font-weight: bold; color: #6366f1; letter-spacing: 8px; margin: 0; font-family: 'Courier New', monospace;">{code}</p>
      </div>
      <p style="color: #6b7280; font-size: 12px; margin: 10px 0 0 0;">This code will expire in 5 minutes</p>
    </div>
    <div style="border-top: 1px solid #e5e7eb; padding-top: 20px; margin-top: 30px;">
      <p style="color: #6b7280; font-size: 12px; line-height: 1.6; margin: 0;">
        If you didn't request this verification code, you can safely ignore this email.
      </p>
      <p style="color: #6b7280; font-size: 12px; line-height: 1.6; margin: 10px 0 0 0;">
        For security reasons, never share this code with anyone.
      </p>
    </div>
    <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #e5e7eb; text-align: center;">
      <p style="color: #9ca3af; font-size: 11px; margin: 0;">
        &copy; {year} Comnecter. All rights reserved.
      </p>
    </div>
  </div>
</body>
</html>
"""

COMPACT_HTML_TEMPLATE = """<div style="font-family: Arial, sans-serif; padding: 20px; text-align: center;">
  <h2 style="color: #6366f1;">Comnecter Verification Code</h2>
  <div style="background-color: #f9fafb; padding: 20px; margin: 20px 0; border-radius: 8px;">
    <p style="font-size: 32px; font-weight: bold; color: #6366f1; letter-spacing: 4px; margin: 0;">{code}</p>
  </div>
  <p style="color: #6b7280; font-size: 14px;">This code will expire in 5 minutes.</p>
</div>
"""


def current_year() -> int:
    return datetime.now(timezone.utc).year


def compose_verification_email(
    email: str,
    code: str,
    sender_email: str,
    sender_name: str = DEFAULT_SENDER_NAME,
    year: Optional[int] = None,
    layout: MessageLayout = MessageLayout.STANDARD
) -> EmailMessage:
    """
    Compose the verification email for a recipient.

    Args:
        email: Recipient address
        code: Verification code to deliver
        sender_email: Sender address
        sender_name: Sender display name
        year: Footer year (default: current UTC year)
        layout: STANDARD for the branded document, COMPACT for the short form

    Returns:
        EmailMessage: Composed message

    Raises:
        ValueError: If email, code or sender_email is empty

    Example:
        >>> message = compose_verification_email(
        ...     "a@x.com", "123456", "noreply@comnecter.com", year=2026
        ... )
        >>> message.subject
        'Your Comnecter Verification Code'
    """
    if not email or not code or not sender_email:
        raise ValueError("email, code and sender_email are required to compose a message")

    safe_code = html.escape(code)

    if layout == MessageLayout.COMPACT:
        text_body = COMPACT_TEXT_TEMPLATE.format(code=code)
        html_body = COMPACT_HTML_TEMPLATE.format(code=safe_code)
    else:
        text_body = STANDARD_TEXT_TEMPLATE.format(code=code)
        html_body = STANDARD_HTML_TEMPLATE.format(
            code=safe_code,
            year=year if year is not None else current_year()
        )

    logger.debug(f"Composed {layout.value} verification email for {email}")

    return EmailMessage(
        to_email=email,
        from_email=sender_email,
        from_name=sender_name,
        subject=SUBJECT,
        text_body=text_body,
        html_body=html_body
    )
