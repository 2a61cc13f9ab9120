"""
Email processing pipeline - OTP extraction for inbound SES mail.

This module handles the end-to-end processing of SES email notifications:
1. Parse SES notification from SQS record
2. Fetch email from S3
3. Extract subject and body
4. Extract a one-time code (subject first, then body)
5. Publish the code to S3 (if configured)
6. Return result (success or failure)

All errors are caught and returned as ProcessingResult with success=False.
No exceptions propagate out of the public methods.
"""

import json
import logging
import os
from typing import Dict, Any, Optional

from .models import EmailMetadata, EmailContent, ExtractionResult, ProcessingResult
from .otp_extractor import extract_otp_from_email
from services import email as email_service
from services import s3 as s3_service

logger = logging.getLogger(__name__)

_TRUE_VALUES = {'1', 'true', 'yes', 'y', 'on'}


def mask_code(code: str) -> str:
    """Keep only the last two characters of a code for logs."""
    if len(code) <= 2:
        return '*' * len(code)
    return '*' * (len(code) - 2) + code[-2:]


class EmailProcessor:
    """
    Handles end-to-end email processing pipeline.

    Configuration is read from the environment when the processor is created:
        OTP_RESULTS_BUCKET: bucket for extraction results (unset disables publishing)
        OTP_RESULTS_KEY_PREFIX: key prefix for results (default "otp-results/")
        OTP_LOG_CODES: log codes in clear text instead of masked
    """

    def __init__(
        self,
        results_bucket: Optional[str] = None,
        results_prefix: Optional[str] = None,
        log_codes: Optional[bool] = None
    ):
        self.results_bucket = results_bucket if results_bucket is not None else os.environ.get('OTP_RESULTS_BUCKET', '')
        self.results_prefix = results_prefix if results_prefix is not None else os.environ.get('OTP_RESULTS_KEY_PREFIX', 'otp-results/')
        if log_codes is None:
            log_codes = os.environ.get('OTP_LOG_CODES', 'false').strip().lower() in _TRUE_VALUES
        self.log_codes = log_codes

    def process_ses_record(self, record: Dict[str, Any]) -> ProcessingResult:
        """
        Process a single SQS record containing SES notification.

        Args:
            record: SQS record dict containing SES notification

        Returns:
            ProcessingResult with success=True or success=False (errors logged).
            An email without a code is a success with extraction=None.
        """
        message_id = record.get('messageId', 'UNKNOWN')
        logger.info(f"Processing SQS message: {message_id}")

        try:
            metadata = self._parse_ses_notification(record)
            logger.info(f"Parsed: from={metadata.from_address}, subject_length={len(metadata.subject)}")

            email_content = self._fetch_email(metadata)
            logger.info(
                f"Fetched: text={len(email_content.text_body)}, html={len(email_content.html_body)}"
            )

            extraction = self._extract_code(metadata, email_content)

            if extraction:
                self._publish_result(metadata, extraction)

            return ProcessingResult(
                success=True,
                message_id=message_id,
                metadata=metadata,
                extraction=extraction
            )

        except Exception as e:
            logger.error(f"Failed to process {message_id}: {e}", exc_info=True)

            return ProcessingResult(
                success=False,
                message_id=message_id,
                error_message=str(e)
            )

    def _parse_ses_notification(self, record: Dict[str, Any]) -> EmailMetadata:
        """
        Parse SQS record and extract SES notification metadata.

        Handles both direct SES->SQS and SNS-wrapped notifications.

        Raises:
            ValueError: If notification structure is invalid
            json.JSONDecodeError: If JSON parsing fails
        """
        sqs_body = json.loads(record['body'])

        if sqs_body.get('Type') == 'Notification' and 'Message' in sqs_body:
            logger.info("Unwrapping SNS message (SES -> SNS -> SQS)")
            ses_notification = json.loads(sqs_body['Message'])
        else:
            ses_notification = sqs_body

        if 'mail' not in ses_notification or 'receipt' not in ses_notification:
            raise ValueError("SES notification missing 'mail' or 'receipt' fields")

        mail = ses_notification['mail']
        common_headers = mail.get('commonHeaders', {})
        action = ses_notification['receipt'].get('action', {})

        bucket_name = action.get('bucketName')
        object_key = action.get('objectKey')
        if not bucket_name or not object_key:
            raise ValueError("Missing S3 location in SES notification")

        # 'from' is normally a list but some senders produce a bare string
        from_field = common_headers.get('from', [])
        if isinstance(from_field, list) and from_field:
            from_address = from_field[0]
        elif isinstance(from_field, str) and from_field:
            from_address = from_field
        else:
            from_address = mail.get('returnPath', 'Unknown')

        return EmailMetadata(
            message_id=record.get('messageId', 'UNKNOWN'),
            from_address=from_address,
            subject=common_headers.get('subject', ''),
            timestamp=mail.get('timestamp', ''),
            bucket_name=bucket_name,
            object_key=object_key
        )

    def _fetch_email(self, metadata: EmailMetadata) -> EmailContent:
        """
        Fetch email from S3 and parse content.

        Raises:
            ValueError: If S3 fetch fails or email parsing fails
        """
        raw_email = s3_service.fetch_email_from_s3(
            metadata.bucket_name,
            metadata.object_key
        )
        logger.info(f"Fetched {len(raw_email):,} bytes from s3://{metadata.bucket_name}/{metadata.object_key}")

        parsed = email_service.extract_email_body(raw_email)

        return EmailContent(
            subject=parsed.get('subject', ''),
            text_body=parsed.get('text_body', ''),
            html_body=parsed.get('html_body', '')
        )

    def _extract_code(
        self,
        metadata: EmailMetadata,
        content: EmailContent
    ) -> Optional[ExtractionResult]:
        """Run the extractor, preferring the SES subject over the MIME one."""
        subject = metadata.subject or content.subject
        body = content.body_for_extraction
        if not content.has_content:
            logger.warning(f"Email body is empty, checking subject only for message {metadata.message_id}")
            body = None

        extraction = extract_otp_from_email(subject, body)

        if extraction is None:
            logger.info(f"No verification code found in message {metadata.message_id}")
            return None

        shown = extraction.code if self.log_codes else mask_code(extraction.code)
        logger.info(
            f"Code found: {shown} (confidence={extraction.confidence.value}, "
            f"source={extraction.source.value})"
        )
        return extraction

    def _publish_result(
        self,
        metadata: EmailMetadata,
        extraction: ExtractionResult
    ) -> None:
        """
        Publish the extracted code to S3 for downstream consumers.

        Skipped when OTP_RESULTS_BUCKET is not configured. Failures propagate
        and mark the record as failed.
        """
        if not self.results_bucket:
            logger.debug("Result publishing not configured, skipping")
            return

        key = f"{self.results_prefix}{metadata.message_id}.json"
        record = {
            'message_id': metadata.message_id,
            'subject': metadata.subject,
            'from': metadata.from_address,
            'timestamp': metadata.timestamp,
            **extraction.to_dict(),
        }
        s3_service.upload_extraction_result(self.results_bucket, key, record)
