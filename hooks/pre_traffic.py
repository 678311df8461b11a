import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')


def _report(event, status):
    codedeploy.put_lifecycle_event_hook_execution_status(
        deploymentId=event['DeploymentId'],
        lifecycleEventHookExecutionId=event['LifecycleEventHookExecutionId'],
        status=status
    )


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Smoke tests the new manual-send version before shifting traffic.

    The test payload has no email or code, so a healthy function answers
    400 invalid-argument without contacting SendGrid.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise ValueError("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Running smoke tests on {target_function}")

        response = lambda_client.invoke(
            FunctionName=target_function,
            InvocationType='RequestResponse',
            Payload=json.dumps({'test': True})
        )

        response_payload = json.loads(response['Payload'].read())
        logger.info(f"Test response: {json.dumps(response_payload)}")

        if response.get('FunctionError'):
            raise Exception(f"Function returned error: {response_payload}")

        if response.get('StatusCode') != 200:
            raise Exception(f"Unexpected status code: {response.get('StatusCode')}")

        if response_payload.get('statusCode') != 400:
            raise Exception(f"Invalid response status: {response_payload.get('statusCode')}")

        body = json.loads(response_payload.get('body', '{}'))
        error_code = body.get('error', {}).get('code')
        if error_code != 'invalid-argument':
            raise Exception(f"Expected invalid-argument error, got: {error_code}")

        logger.info("Pre-traffic validation passed")
        _report(event, 'Succeeded')

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        _report(event, 'Failed')

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }
