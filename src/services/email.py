"""
Email parsing utilities for Lambda handlers.

Turns raw MIME messages into the subject and body text the OTP extractor
works on. Attachments are never needed for code extraction and are skipped.
"""

import logging
from email import policy
from email.message import EmailMessage
from email.parser import BytesParser
from typing import Dict, Any

logger = logging.getLogger(__name__)


def _decode_part(part: EmailMessage) -> str:
    """
    Decode a text part, handling quoted-printable and base64.

    Falls back to a lenient UTF-8 decode when the declared charset is wrong.
    """
    try:
        return part.get_content()
    except Exception as e:
        logger.warning(f"Failed to decode {part.get_content_type()} part with get_content(): {e}")
        payload = part.get_payload(decode=True)
        return payload.decode('utf-8', errors='ignore') if payload else ''


def extract_email_body(email_content: bytes) -> Dict[str, Any]:
    """
    Parse raw email (MIME format) and extract subject and body text.

    Args:
        email_content: Raw email bytes from S3

    Returns:
        Dictionary with subject, text_body and html_body (empty strings when absent)

    Example:
        >>> email_bytes = b"Subject: Your code\\r\\n\\r\\nCode: 482913"
        >>> result = extract_email_body(email_bytes)
        >>> print(result['text_body'])
        "Code: 482913"
    """
    msg = BytesParser(policy=policy.default).parsebytes(email_content)

    result = {
        'subject': str(msg.get('Subject', '') or ''),
        'text_body': '',
        'html_body': '',
    }

    if msg.is_multipart():
        for part in msg.walk():
            if part.is_multipart():
                continue

            # Attachments (including named inline parts) never carry the code text
            disposition = part.get_content_disposition()
            if disposition == 'attachment' or part.get_filename():
                continue

            content_type = part.get_content_type()
            if content_type == 'text/plain' and not result['text_body']:
                result['text_body'] = _decode_part(part)
            elif content_type == 'text/html' and not result['html_body']:
                result['html_body'] = _decode_part(part)
    else:
        content_type = msg.get_content_type()
        if content_type == 'text/plain':
            result['text_body'] = _decode_part(msg)
        elif content_type == 'text/html':
            result['html_body'] = _decode_part(msg)
        else:
            logger.warning(
                f"Unknown content type for non-multipart email: {content_type}. "
                f"Email body will be empty."
            )

    return result
