"""
AWS Lambda handler for extracting verification codes from SES emails queued on SQS.

Thin orchestration layer that delegates to EmailProcessor.
Policy: Always delete messages (no retries). Errors logged to CloudWatch.
"""

import logging
import os
from typing import Dict, Any

from domain.email_processor import EmailProcessor

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Add console handler for local testing (AWS Lambda provides handlers automatically)
if not logger.handlers:
    console_handler = logging.StreamHandler()
    formatter = logging.Formatter('%(levelname)s - %(message)s')
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

# Initialize processor once at module level (reused across invocations)
email_processor = EmailProcessor()


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process SES email notifications from SQS.

    Args:
        event: Lambda event with SQS records
        context: Lambda context

    Returns:
        Dict with batchItemFailures (always empty - no retries)
    """
    records = event.get('Records', [])
    logger.info(f"OTP extraction: processing batch of {len(records)} message(s)")

    results = []
    for record in records:
        result = email_processor.process_ses_record(record)
        results.append(result)

        if not result.success:
            logger.warning(
                f"Processed message {result.message_id} with ERRORS: "
                f"{result.error_message}"
            )
        elif result.code_found:
            logger.info(f"Code extracted from message {result.message_id}")
        else:
            logger.info(f"No code in message {result.message_id}")

    success_count = sum(1 for r in results if r.success)
    found_count = sum(1 for r in results if r.code_found)
    logger.info(
        f"Batch complete: {len(results)} message(s), "
        f"codes found: {found_count}, errors: {len(results) - success_count}"
    )

    return {"batchItemFailures": []}
