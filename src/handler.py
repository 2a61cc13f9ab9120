import json
import os
import logging
from typing import Dict, Any

from domain.otp_extractor import extract_otp_from_email
from domain.validators import get_validation_failure_reason, VALID

# Configure logging
logger = logging.getLogger()
logger.setLevel(os.environ.get('LOG_LEVEL', 'INFO').upper())

# Environment variables
ENVIRONMENT = os.environ.get('ENVIRONMENT', 'dev')


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {
            'Content-Type': 'application/json'
        },
        'body': json.dumps(body)
    }


def _validate(event: Dict[str, Any]) -> Dict[str, Any]:
    code = event.get('code')
    if not code:
        raise ValueError("code is required for the validate action")

    reason = get_validation_failure_reason(code)
    return {
        'code': code,
        'valid': reason == VALID,
        'reason': reason
    }


def _extract(event: Dict[str, Any]) -> Dict[str, Any]:
    subject = event.get('subject')
    body = event.get('body')
    if not subject and not body:
        raise ValueError("subject or body is required")

    result = extract_otp_from_email(subject, body)
    if result is None:
        return {'found': False, 'code': None, 'confidence': None, 'source': None}
    return {'found': True, **result.to_dict()}


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for on-demand code extraction and validation.

    Expected event formats:
    {
        "subject": "Your login code",
        "body": "<p>Use 482913 to sign in</p>"
    }
    {
        "action": "validate",
        "code": "482913"
    }
    """
    logger.info(f"Environment: {ENVIRONMENT}")
    action = None

    try:
        if not isinstance(event, dict):
            raise ValueError("Event must be a JSON object")
        action = event.get('action', 'extract')
        logger.info(f"Received {action} request")

        if action == 'validate':
            return _response(200, _validate(event))
        if action == 'extract':
            return _response(200, _extract(event))
        raise ValueError(f"Unknown action: {action}")

    except ValueError as ve:
        logger.error(f"Validation error: {str(ve)}")
        return _response(400, {'error': str(ve)})

    except Exception as e:
        logger.error(f"Error handling {action} request: {str(e)}", exc_info=True)
        return _response(500, {
            'error': 'Internal server error',
            'message': str(e)
        })


def health_check(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Simple health check endpoint for monitoring.
    """
    return _response(200, {
        'status': 'healthy',
        'environment': ENVIRONMENT
    })
