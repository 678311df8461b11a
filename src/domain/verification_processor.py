"""
Verification email pipeline - core business logic.

Two entry points share configuration, composition and delivery:

Reactive (stream record created):
1. Validate the new record (email and code present)
2. Resolve delivery configuration
3. Compose and send the email
4. Record the outcome back onto the record

Manual (direct call):
1. Validate email and code
2. Resolve delivery configuration
3. Compose and send the email
4. Return the result to the caller (nothing is persisted)

The reactive path never raises; every stream record ends in a DeliveryResult.
The manual path raises CallableError subclasses.
"""

import logging
from typing import Any, Dict, Optional

from .errors import ConfigurationError, InternalError, InvalidArgumentError, ProviderError
from .models import (
    DeliveryOutcome,
    DeliveryResult,
    DeliveryState,
    VerificationCodeRecord,
)
from services import composer
from services import config as config_service
from services import dynamodb as dynamodb_service
from integrations import sendgrid_delivery

logger = logging.getLogger(__name__)

CREATION_EVENT = 'INSERT'


class VerificationEmailProcessor:
    """
    Delivers verification codes by email.

    Handles stream records for the reactive trigger and direct calls for the
    manual fallback.
    """

    def __init__(self, table_name: Optional[str] = None):
        """
        Initialize processor.

        Args:
            table_name: Verification codes table override
        """
        self.table_name = table_name

    def process_stream_record(self, record: Dict[str, Any]) -> DeliveryResult:
        """
        Process a single DynamoDB stream record.

        Args:
            record: Stream record dict

        Returns:
            DeliveryResult (errors are logged, never raised)
        """
        event_id = record.get('eventID', 'UNKNOWN')
        event_name = record.get('eventName')

        if event_name != CREATION_EVENT:
            logger.info(f"Ignoring {event_name} event {event_id} (only creations trigger delivery)")
            return DeliveryResult(state=DeliveryState.IGNORED, event_id=event_id)

        try:
            return self._deliver(record, event_id)
        except Exception as e:
            logger.error(f"Unexpected error processing {event_id}: {e}", exc_info=True)
            return DeliveryResult(
                state=DeliveryState.FAILED,
                event_id=event_id,
                error_message=str(e)
            )

    def _deliver(self, record: Dict[str, Any], event_id: str) -> DeliveryResult:
        logger.debug(f"Event {event_id}: {DeliveryState.VALIDATING.value}")
        stream_data = record.get('dynamodb', {})
        image = stream_data.get('NewImage', {})
        code_record = VerificationCodeRecord.from_item(dynamodb_service.deserialize_image(image))

        if not code_record.is_deliverable:
            logger.error(f"Missing email or code in verification record (event {event_id})")
            return DeliveryResult(
                state=DeliveryState.DROPPED,
                event_id=event_id,
                email=code_record.email,
                error_message='Missing email or code'
            )

        if code_record.has_outcome:
            logger.info(f"Record for {code_record.email} already has an outcome, skipping (event {event_id})")
            return DeliveryResult(state=DeliveryState.IGNORED, event_id=event_id, email=code_record.email)

        email = code_record.email
        try:
            delivery_config = config_service.resolve_delivery_configuration()
        except ConfigurationError as e:
            # Record stays in its created state; no outcome is written
            logger.error(f"Configuration error, cannot send to {email}: {e}")
            return DeliveryResult(
                state=DeliveryState.CREATED,
                event_id=event_id,
                email=email,
                error_message=str(e)
            )

        logger.info(f"Attempting to send email from: {delivery_config.sender_email}")
        message = composer.compose_verification_email(
            email,
            code_record.code,
            delivery_config.sender_email,
            sender_name=delivery_config.sender_name,
            layout=composer.MessageLayout.STANDARD
        )

        logger.debug(f"Event {event_id}: {DeliveryState.SENDING.value}")
        try:
            sendgrid_delivery.send_email(delivery_config.api_key, message)
        except ProviderError as e:
            logger.error(f"Error sending verification email to {email}: {e.message}")
            state = DeliveryState.FAILED
            outcome = DeliveryOutcome.failed(e.message)
        else:
            logger.info(f"Verification email sent successfully to {email}")
            state = DeliveryState.SENT
            outcome = DeliveryOutcome.succeeded()

        recorded = dynamodb_service.record_outcome(
            email,
            outcome,
            table_name=self.table_name,
            key=stream_data.get('Keys')
        )
        if not recorded:
            logger.warning(f"Outcome for {email} was not recorded; delivery state is still {state.value}")

        return DeliveryResult(
            state=state,
            event_id=event_id,
            email=email,
            error_message=outcome.email_error,
            outcome_recorded=recorded
        )

    def send_manual(self, email: Optional[str], code: Optional[str]) -> Dict[str, Any]:
        """
        Send a verification email synchronously.

        Args:
            email: Recipient address
            code: Verification code

        Returns:
            {"success": True, "message": "Email sent successfully"}

        Raises:
            InvalidArgumentError: If email or code is missing
            InternalError: If configuration or delivery fails
        """
        if not email or not code:
            raise InvalidArgumentError('Email and code are required')

        email, code = str(email), str(code)

        try:
            delivery_config = config_service.resolve_delivery_configuration()
            message = composer.compose_verification_email(
                email,
                code,
                delivery_config.sender_email,
                sender_name=delivery_config.sender_name,
                layout=composer.MessageLayout.COMPACT
            )
            sendgrid_delivery.send_email(delivery_config.api_key, message)
        except (ConfigurationError, ProviderError) as e:
            logger.error(f"Error sending email: {e}")
            raise InternalError('Failed to send email', details=str(e))

        logger.info(f"Manual verification email sent to {email}")
        return {'success': True, 'message': 'Email sent successfully'}
