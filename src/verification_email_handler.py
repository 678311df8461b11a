"""
AWS Lambda handler for verification code records created in DynamoDB.

Thin orchestration layer that delegates to VerificationEmailProcessor.
Policy: Never fail the batch (no stream retries). Outcomes are written onto
the records; errors are logged to CloudWatch.
"""

import logging
import os
from collections import Counter
from typing import Dict, Any

from domain.models import DeliveryState
from domain.verification_processor import VerificationEmailProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO'))

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
verification_processor = VerificationEmailProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Send verification emails for newly created verification code records.

    Args:
        event: Lambda event with DynamoDB stream records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (always empty - no retries)
    """
    logger.info("=" * 70)
    logger.info("Verification Email Sender - Started")
    logger.info("=" * 70)

    records = event.get('Records', [])
    logger.info(f"Processing batch of {len(records)} stream record(s)")

    states = Counter()
    for record in records:
        result = verification_processor.process_stream_record(record)
        states[result.state] += 1

        if result.state == DeliveryState.SENT:
            logger.info(f"✓ Verification email sent for event {result.event_id}")
        elif result.state == DeliveryState.IGNORED:
            continue
        else:
            logger.warning(f"⚠ Event {result.event_id} ended {result.state.value.upper()}: {result.error_message}")

        if result.state in (DeliveryState.SENT, DeliveryState.FAILED) and not result.outcome_recorded:
            logger.warning(f"⚠ Outcome for event {result.event_id} was not written to the record")

    logger.info("=" * 70)
    logger.info(f"Batch processing complete: {len(records)} record(s)")
    logger.info(f"  Sent: {states[DeliveryState.SENT]}")
    logger.info(f"  Failed: {states[DeliveryState.FAILED]}")
    logger.info(f"  Dropped: {states[DeliveryState.DROPPED]}")
    logger.info(f"  Not configured: {states[DeliveryState.CREATED]}")
    logger.info(f"  Ignored: {states[DeliveryState.IGNORED]}")
    logger.info("=" * 70)

    return {"batchItemFailures": []}
