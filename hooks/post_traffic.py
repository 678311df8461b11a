import json
import boto3
import os
import logging
from datetime import datetime, timedelta, timezone

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
cloudwatch = boto3.client('cloudwatch')

ERROR_WINDOW_MINUTES = int(os.environ.get('ERROR_WINDOW_MINUTES', '5'))
ERROR_THRESHOLD = float(os.environ.get('ERROR_THRESHOLD', '0'))


def _report(event, status):
    codedeploy.put_lifecycle_event_hook_execution_status(
        deploymentId=event['DeploymentId'],
        lifecycleEventHookExecutionId=event['LifecycleEventHookExecutionId'],
        status=status
    )


def lambda_handler(event, context):
    """
    Post-traffic hook for CodeDeploy.
    Fails the deployment if the new version's Lambda error count over the
    last ERROR_WINDOW_MINUTES exceeds ERROR_THRESHOLD.
    """
    logger.info(f"Post-traffic hook triggered: {json.dumps(event)}")

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise ValueError("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Validating post-deployment metrics for {target_function}")

        end_time = datetime.now(timezone.utc)
        response = cloudwatch.get_metric_statistics(
            Namespace='AWS/Lambda',
            MetricName='Errors',
            Dimensions=[
                {
                    'Name': 'FunctionName',
                    'Value': target_function
                }
            ],
            StartTime=end_time - timedelta(minutes=ERROR_WINDOW_MINUTES),
            EndTime=end_time,
            Period=ERROR_WINDOW_MINUTES * 60,
            Statistics=['Sum']
        )

        logger.info(f"CloudWatch metrics: {json.dumps(response, default=str)}")

        errors = sum(point.get('Sum', 0) for point in response.get('Datapoints', []))
        if errors > ERROR_THRESHOLD:
            raise Exception(f"Error count too high: {errors} > {ERROR_THRESHOLD}")

        logger.info(f"Post-traffic validation passed ({errors} error(s))")
        _report(event, 'Succeeded')

        return {
            'statusCode': 200,
            'body': json.dumps('Post-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Post-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will trigger rollback
        _report(event, 'Failed')

        return {
            'statusCode': 500,
            'body': json.dumps(f'Post-traffic validation failed: {str(e)}')
        }
