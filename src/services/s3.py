"""
S3 operations utilities for Lambda handlers.

Raw SES emails are read from S3; extracted codes are optionally published
back to S3 as JSON for the consumer that owns the "current code" state.
"""

import json
import logging
from typing import Dict, Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# Configure S3 client with timeouts to prevent infinite hangs
s3_config = Config(
    retries={
        'max_attempts': 1,  # 1 attempt total (no retries)
        'mode': 'standard'
    },
    connect_timeout=10,
    read_timeout=30
)

# Initialize S3 client at module level (thread-safe, reused across invocations)
s3_client = boto3.client('s3', config=s3_config)


def fetch_email_from_s3(bucket: str, key: str) -> bytes:
    """
    Fetch raw email content from S3.

    Args:
        bucket: S3 bucket name
        key: S3 object key (path to the email file)

    Returns:
        bytes: The raw email content

    Raises:
        ValueError: If the bucket or key does not exist
        ClientError: For any other S3 failure
    """
    try:
        response = s3_client.get_object(Bucket=bucket, Key=key)
        return response['Body'].read()
    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', '')
        if error_code == 'NoSuchKey':
            logger.error(f"S3 object not found: s3://{bucket}/{key}")
            raise ValueError(f"Email file not found in S3: {key}")
        if error_code == 'NoSuchBucket':
            logger.error(f"S3 bucket not found: {bucket}")
            raise ValueError(f"S3 bucket not found: {bucket}")
        logger.error(f"Failed to fetch from S3 s3://{bucket}/{key}: {e}")
        raise


def upload_extraction_result(bucket: str, key: str, result: Dict[str, Any]) -> None:
    """
    Publish an extraction result to S3 as JSON.

    Args:
        bucket: S3 bucket name
        key: S3 object key
        result: JSON-serializable extraction record

    Raises:
        ValueError: If parameters are invalid
        ClientError: If S3 operation fails

    Example:
        >>> upload_extraction_result(
        ...     bucket="otp-results",
        ...     key="otp-results/msg-123.json",
        ...     result={"code": "482913", "confidence": "high", "source": "subject"}
        ... )
    """
    if not bucket:
        raise ValueError("S3 bucket name cannot be empty")
    if not key:
        raise ValueError("S3 object key cannot be empty")
    if result is None:
        raise ValueError("Result cannot be None")

    body = json.dumps(result).encode('utf-8')

    try:
        s3_client.put_object(
            Bucket=bucket,
            Key=key,
            Body=body,
            ContentType='application/json'
        )
        logger.info(f"Published extraction result to s3://{bucket}/{key} ({len(body)} bytes)")

    except ClientError as e:
        error_code = e.response.get('Error', {}).get('Code', 'Unknown')
        error_message = e.response.get('Error', {}).get('Message', str(e))
        logger.error(
            f"Failed to publish extraction result: "
            f"bucket={bucket}, key={key}, "
            f"error_code={error_code}, error_message={error_message}"
        )
        raise
