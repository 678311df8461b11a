"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest
from unittest.mock import Mock

# Add src and hooks to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../hooks'))

# Set up test environment variables before importing any modules
# (boto3 clients are created at import time and need a region)
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('VERIFICATION_CODES_TABLE', 'verification_codes')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')

CONFIG_ENV_VARS = ('SENDGRID_API_KEY', 'SENDGRID_SENDER_EMAIL', 'LEGACY_CONFIG_PARAMETER')


@pytest.fixture(autouse=True)
def clean_delivery_config(monkeypatch):
    """Start every test without provider config and with an empty legacy cache."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    from services import config
    config.clear_cache()
    yield
    config.clear_cache()


@pytest.fixture
def lambda_context():
    """Mock Lambda context."""
    context = Mock()
    context.request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:test"
    context.function_name = "verification-email-test"
    return context


def make_stream_record(email="a@x.com", code="123456", event_name="INSERT", event_id="event-1"):
    """Build a DynamoDB stream record for a verification code item."""
    image = {}
    if email is not None:
        image['email'] = {'S': email}
    if code is not None:
        image['code'] = {'S': code}
    return {
        'eventID': event_id,
        'eventName': event_name,
        'eventSource': 'aws:dynamodb',
        'dynamodb': {
            'Keys': {'email': {'S': email or ''}},
            'NewImage': image,
            'StreamViewType': 'NEW_IMAGE'
        }
    }


@pytest.fixture
def stream_record():
    return make_stream_record()
