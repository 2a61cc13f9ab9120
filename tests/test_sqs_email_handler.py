"""
Tests for SQS Email Handler Lambda function.
"""

import json
import pytest
from unittest.mock import Mock, patch, MagicMock
from botocore.exceptions import ClientError
import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

import sqs_email_handler


@pytest.fixture
def sqs_event():
    """Load sample SQS event from test data."""
    with open(os.path.join(os.path.dirname(__file__), 'events', 'sqs-event.json')) as f:
        return json.load(f)


@pytest.fixture
def mock_context():
    """Mock Lambda context."""
    context = Mock()
    context.request_id = "test-request-id"
    context.invoked_function_arn = "arn:aws:lambda:us-west-2:123456789012:function:test"
    context.function_name = "otp-email-handler-test"
    return context


class TestLambdaHandler:
    """Test the main Lambda handler function."""

    @patch('services.s3.s3_client')
    def test_lambda_handler_success(self, mock_s3_client, sqs_event, mock_context, otp_email_content):
        mock_s3_client.get_object.return_value = {
            'Body': MagicMock(read=lambda: otp_email_content)
        }

        processed = []
        original = sqs_email_handler.email_processor.process_ses_record

        def record_result(record):
            result = original(record)
            processed.append(result)
            return result

        with patch.object(sqs_email_handler.email_processor, 'process_ses_record', side_effect=record_result):
            result = sqs_email_handler.lambda_handler(sqs_event, mock_context)

        assert result == {"batchItemFailures": []}
        mock_s3_client.get_object.assert_called_once_with(
            Bucket='ses-emails-123456789012-dev',
            Key='test-email-key'
        )
        assert len(processed) == 1
        assert processed[0].success is True
        assert processed[0].extraction.code == "482913"

    @patch('services.s3.s3_client')
    def test_lambda_handler_s3_error(self, mock_s3_client, sqs_event, mock_context):
        """Test handler when S3 fetch fails - message is still deleted."""
        mock_s3_client.get_object.side_effect = ClientError(
            {'Error': {'Code': 'NoSuchKey', 'Message': 'The specified key does not exist.'}},
            'GetObject'
        )

        result = sqs_email_handler.lambda_handler(sqs_event, mock_context)

        assert len(result["batchItemFailures"]) == 0

    @patch('services.s3.s3_client')
    def test_lambda_handler_no_code(self, mock_s3_client, sqs_event, mock_context, plain_email_content):
        mock_s3_client.get_object.return_value = {
            'Body': MagicMock(read=lambda: plain_email_content)
        }

        result = sqs_email_handler.lambda_handler(sqs_event, mock_context)

        assert result == {"batchItemFailures": []}

    @patch('services.s3.s3_client')
    def test_lambda_handler_multiple_records(self, mock_s3_client, mock_context, otp_email_content):
        """Test handler with multiple SQS records."""
        multi_event = {
            "Records": [
                {
                    "messageId": f"msg-{i}",
                    "body": json.dumps({
                        "notificationType": "Received",
                        "mail": {
                            "commonHeaders": {
                                "from": ["noreply@example.com"],
                                "subject": f"Login attempt {i}"
                            },
                            "timestamp": "2024-11-05T10:30:00.000Z"
                        },
                        "receipt": {
                            "action": {
                                "type": "S3",
                                "bucketName": "test-bucket",
                                "objectKey": f"email-{i}.eml"
                            }
                        }
                    })
                }
                for i in range(3)
            ]
        }
        mock_s3_client.get_object.return_value = {
            'Body': MagicMock(read=lambda: otp_email_content)
        }

        result = sqs_email_handler.lambda_handler(multi_event, mock_context)

        assert result == {"batchItemFailures": []}
        assert mock_s3_client.get_object.call_count == 3

    @patch('services.s3.s3_client')
    def test_lambda_handler_always_consumes_messages(self, mock_s3_client, mock_context):
        """Messages are ALWAYS consumed regardless of errors, to prevent replay."""
        mixed_failure_event = {
            "Records": [
                {"messageId": "msg-invalid-json", "body": "not valid json"},
                {"messageId": "msg-missing-fields", "body": json.dumps({"invalid": "structure"})},
                {
                    "messageId": "msg-s3-error",
                    "body": json.dumps({
                        "mail": {"commonHeaders": {"from": ["noreply@example.com"], "subject": "Code"}},
                        "receipt": {"action": {"bucketName": "test-bucket", "objectKey": "test-key"}}
                    })
                }
            ]
        }
        mock_s3_client.get_object.side_effect = ClientError(
            {'Error': {'Code': 'NoSuchKey', 'Message': 'The specified key does not exist.'}},
            'GetObject'
        )

        result = sqs_email_handler.lambda_handler(mixed_failure_event, mock_context)

        assert result == {"batchItemFailures": []}

    def test_lambda_handler_empty_batch(self, mock_context):
        assert sqs_email_handler.lambda_handler({}, mock_context) == {"batchItemFailures": []}


if __name__ == '__main__':
    pytest.main([__file__, '-v'])
