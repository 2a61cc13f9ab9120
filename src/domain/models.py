"""
Data models for OTP extraction domain.

These type-safe data structures define clear contracts between components.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


class Confidence(str, Enum):
    """Trust level assigned by the cascade tier that produced a code."""
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class Source(str, Enum):
    """Part of the email a code was found in."""
    SUBJECT = 'subject'
    BODY = 'body'


@dataclass(frozen=True)
class ResolvedCode:
    """
    Candidate that survived cleanup and full validation.

    Attributes:
        value: Digits only, or upper-cased alphanumerics (4-8 chars)
        confidence: Confidence of the tier that produced it
    """
    value: str
    confidence: Confidence


@dataclass(frozen=True)
class ExtractionResult:
    """
    Code found in an email, tagged with where it was found.

    Attributes:
        code: The resolved code
        confidence: high, medium or low
        source: subject or body
    """
    code: str
    confidence: Confidence
    source: Source

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'confidence': self.confidence.value,
            'source': self.source.value,
        }


@dataclass
class EmailMetadata:
    """
    Structured email metadata extracted from SES notification.

    Attributes:
        message_id: Unique SQS message identifier
        from_address: Email sender address
        subject: Email subject line (empty string if SES did not carry one)
        timestamp: ISO 8601 timestamp when email was received
        bucket_name: S3 bucket containing the raw email
        object_key: S3 object key for the raw email
    """
    message_id: str
    from_address: str
    subject: str
    timestamp: str
    bucket_name: str
    object_key: str


@dataclass
class EmailContent:
    """
    Parsed email content.

    Attributes:
        subject: Subject taken from the MIME headers
        text_body: Plain text body (empty string if not present)
        html_body: HTML body (empty string if not present)
    """
    subject: str
    text_body: str
    html_body: str

    @property
    def body_for_extraction(self) -> str:
        """
        Body handed to the extractor.

        Priority: text_body > html_body > empty string. HTML is cleaned by
        the extractor itself.
        """
        return self.text_body or self.html_body or ""

    @property
    def has_content(self) -> bool:
        """Check if email has any body content."""
        return bool(self.text_body or self.html_body)


@dataclass
class ProcessingResult:
    """
    Result of email processing operation.

    A missing code is a successful outcome with extraction=None; only
    infrastructure or parsing failures set success=False.

    Attributes:
        success: Whether processing succeeded
        message_id: SQS message identifier
        metadata: Email metadata (if parsing succeeded)
        extraction: Extracted code (None when the email had no code)
        error_message: Error description (if processing failed)
    """
    success: bool
    message_id: str
    metadata: Optional[EmailMetadata] = None
    extraction: Optional[ExtractionResult] = None
    error_message: Optional[str] = None

    @property
    def code_found(self) -> bool:
        return self.extraction is not None

    def __repr__(self) -> str:
        """Human-readable representation for logging."""
        if self.success:
            return (
                f"ProcessingResult(success=True, message_id={self.message_id}, "
                f"code_found={self.code_found})"
            )
        else:
            return f"ProcessingResult(success=False, message_id={self.message_id}, error={self.error_message})"
