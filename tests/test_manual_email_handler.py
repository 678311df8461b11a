import json
import pytest
from unittest.mock import patch

from domain.errors import ProviderError
from integrations.sendgrid_delivery import SendResult


@pytest.fixture
def mock_env(monkeypatch):
    """Set up environment variables."""
    monkeypatch.setenv('SENDGRID_API_KEY', 'SG.test-key')


@patch('services.dynamodb.dynamodb_client')
@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_success(mock_send, mock_dynamodb_client, lambda_context, mock_env):
    """Test manual send returns success and touches no record."""
    from manual_email_handler import lambda_handler

    mock_send.return_value = SendResult(status_code=202)

    response = lambda_handler({'email': 'b@x.com', 'code': '654321'}, lambda_context)

    assert response['statusCode'] == 200
    body = json.loads(response['body'])
    assert body == {'success': True, 'message': 'Email sent successfully'}
    assert mock_send.call_args[0][1].to_email == 'b@x.com'
    mock_dynamodb_client.update_item.assert_not_called()


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_missing_code(mock_send, lambda_context, mock_env):
    """Test missing code fails with invalid-argument and no provider call."""
    from manual_email_handler import lambda_handler

    response = lambda_handler({'email': 'b@x.com'}, lambda_context)

    assert response['statusCode'] == 400
    body = json.loads(response['body'])
    assert body['error']['code'] == 'invalid-argument'
    assert body['error']['message'] == 'Email and code are required'
    mock_send.assert_not_called()


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_provider_failure(mock_send, lambda_context, mock_env):
    from manual_email_handler import lambda_handler

    mock_send.side_effect = ProviderError('The provided authorization grant is invalid', status_code=401)

    response = lambda_handler({'email': 'b@x.com', 'code': '654321'}, lambda_context)

    assert response['statusCode'] == 500
    body = json.loads(response['body'])
    assert body['error'] == {
        'code': 'internal',
        'message': 'Failed to send email',
        'details': 'The provided authorization grant is invalid'
    }


@patch('services.config.ssm_client')
@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_missing_api_key(mock_send, mock_ssm_client, lambda_context):
    from manual_email_handler import lambda_handler

    response = lambda_handler({'email': 'b@x.com', 'code': '654321'}, lambda_context)

    assert response['statusCode'] == 500
    assert json.loads(response['body'])['error']['code'] == 'internal'
    mock_send.assert_not_called()


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_api_gateway_body(mock_send, lambda_context, mock_env):
    """Test API Gateway proxy events with a JSON body."""
    from manual_email_handler import lambda_handler

    mock_send.return_value = SendResult(status_code=202)
    event = {'httpMethod': 'POST', 'body': json.dumps({'email': 'b@x.com', 'code': '654321'})}

    response = lambda_handler(event, lambda_context)

    assert response['statusCode'] == 200
    assert response['headers']['Content-Type'] == 'application/json'


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_callable_envelope(mock_send, lambda_context, mock_env):
    from manual_email_handler import lambda_handler

    mock_send.return_value = SendResult(status_code=202)
    event = {'body': json.dumps({'data': {'email': 'b@x.com', 'code': '654321'}})}

    response = lambda_handler(event, lambda_context)

    assert response['statusCode'] == 200


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_malformed_body(mock_send, lambda_context, mock_env):
    from manual_email_handler import lambda_handler

    response = lambda_handler({'body': '{not json'}, lambda_context)

    assert response['statusCode'] == 400
    assert json.loads(response['body'])['error']['code'] == 'invalid-argument'
    mock_send.assert_not_called()


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_non_object_event(mock_send, lambda_context, mock_env):
    """Test a JSON array event is rejected as invalid-argument."""
    from manual_email_handler import lambda_handler

    response = lambda_handler([{'email': 'b@x.com', 'code': '654321'}], lambda_context)

    assert response['statusCode'] == 400
    body = json.loads(response['body'])
    assert body['error']['code'] == 'invalid-argument'
    assert body['error']['message'] == 'Request body must be a JSON object'
    mock_send.assert_not_called()


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_numeric_code(mock_send, lambda_context, mock_env):
    """Test a code sent as a JSON number is delivered."""
    from manual_email_handler import lambda_handler

    mock_send.return_value = SendResult(status_code=202)

    response = lambda_handler({'email': 'b@x.com', 'code': 654321}, lambda_context)

    assert response['statusCode'] == 200
    assert '654321' in mock_send.call_args[0][1].html_body


@patch('integrations.sendgrid_delivery.send_email')
def test_lambda_handler_unexpected_error(mock_send, lambda_context, mock_env):
    from manual_email_handler import lambda_handler

    mock_send.side_effect = RuntimeError('boom')

    response = lambda_handler({'email': 'b@x.com', 'code': '654321'}, lambda_context)

    assert response['statusCode'] == 500
    assert json.loads(response['body'])['error']['details'] == 'boom'


def test_health_check(lambda_context, mock_env):
    """Test health check endpoint."""
    from manual_email_handler import health_check

    response = health_check({}, lambda_context)

    assert response['statusCode'] == 200
    body = json.loads(response['body'])
    assert body['status'] == 'healthy'
    assert body['apiKeyConfigured'] is True


@patch('services.config.ssm_client')
def test_health_check_without_api_key(mock_ssm_client, lambda_context):
    from manual_email_handler import health_check

    body = json.loads(health_check({}, lambda_context)['body'])

    assert body['apiKeyConfigured'] is False
