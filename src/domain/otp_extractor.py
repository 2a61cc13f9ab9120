"""
One-time code extraction from unstructured email text.

Pipeline, per piece of text:
1. Normalize: strip markup, collapse whitespace
2. Gate: require authentication vocabulary somewhere in the text
3. Cascade: seven pattern tiers, highest confidence first
4. Resolve: clean each candidate and run it through the validators

The first candidate that resolves wins; tiers are never compared against
each other. Everything here is pure and holds no state between calls.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from .models import Confidence, ExtractionResult, ResolvedCode, Source
from .validators import MAX_LENGTH, MIN_LENGTH, is_valid_otp

logger = logging.getLogger(__name__)

_FLAGS = re.IGNORECASE | re.ASCII | re.DOTALL

VERIFICATION_KEYWORDS = (
    'verification', 'verify', 'code', 'pin', 'otp', 'passcode',
    'confirmation', 'confirm', 'security', 'secure', 'authorization',
    'authenticate', 'authentication', 'auth', 'login', 'log in',
    'sign in', 'sign-in', '2fa', 'two-factor', 'two factor',
    'one-time', 'one time', 'onetime', 'password', 'token',
    'access code', 'temporary code', 'validation',
)

_HTML_TAG_RE = re.compile(r'</?[^>]+(?:>|$)')
_NBSP_RE = re.compile(r'&nbsp;', re.IGNORECASE)
_NUMERIC_ENTITY_RE = re.compile(r'&#[0-9]+;')
_WHITESPACE_RE = re.compile(r'\s+')

_NON_ALNUM_RE = re.compile(r'[^a-zA-Z0-9]')
_NON_DIGIT_RE = re.compile(r'[^0-9]')

_TOKEN_RE = re.compile(r'\b[0-9]{4,8}\b', re.ASCII)

ANCHOR_WINDOW = 400


def normalize_text(text) -> str:
    """
    Strip HTML and collapse whitespace.

    Args:
        text: Raw subject or body; anything that is not a str counts as empty

    Returns:
        str: Cleaned, trimmed text (possibly empty)

    Example:
        >>> normalize_text("<p>Your code:&nbsp;<b>482913</b></p>")
        'Your code: 482913'
    """
    if not isinstance(text, str):
        return ''
    text = _HTML_TAG_RE.sub(' ', text)
    text = _NBSP_RE.sub(' ', text)
    text = _NUMERIC_ENTITY_RE.sub(' ', text)
    return _WHITESPACE_RE.sub(' ', text).strip()


def has_verification_context(text: str) -> bool:
    """Check for any authentication-related keyword (case-insensitive)."""
    lowered = text.lower()
    return any(keyword in lowered for keyword in VERIFICATION_KEYWORDS)


def resolve_candidate(candidate: str) -> Optional[str]:
    """
    Turn a raw capture into a validated code.

    The digits-only reading is preferred; otherwise the upper-cased
    alphanumeric reading is tried.

    Returns:
        The resolved code, or None if neither reading validates
    """
    if not candidate:
        return None

    numeric_only = _NON_DIGIT_RE.sub('', candidate)
    if MIN_LENGTH <= len(numeric_only) <= MAX_LENGTH and is_valid_otp(numeric_only):
        return numeric_only

    cleaned = _NON_ALNUM_RE.sub('', candidate)
    if MIN_LENGTH <= len(cleaned) <= MAX_LENGTH and is_valid_otp(cleaned):
        return cleaned.upper()

    return None


# ============================================================================
# Pattern rules
# ============================================================================

@dataclass(frozen=True)
class RegexRule:
    """Left-most match only; capture group 1 is the single candidate."""
    pattern: str

    def __post_init__(self):
        object.__setattr__(self, '_regex', re.compile(self.pattern, _FLAGS))

    def candidates(self, text: str) -> Iterator[str]:
        match = self._regex.search(text)
        if match and match.group(1):
            yield match.group(1)


@dataclass(frozen=True)
class AnchorWindowRule:
    """Every 4-8 digit token in a fixed window after the first occurrence of a phrase."""
    phrase: str
    window: int = ANCHOR_WINDOW

    def __post_init__(self):
        object.__setattr__(self, '_regex', re.compile(re.escape(self.phrase), _FLAGS))

    def candidates(self, text: str) -> Iterator[str]:
        match = self._regex.search(text)
        if not match:
            return
        start = match.start()
        window = text[start:start + self.window]
        for token in _TOKEN_RE.finditer(window):
            yield token.group(0)


@dataclass(frozen=True)
class FallbackLengthRule:
    """Every standalone digit token of exactly one length, left to right."""
    length: int

    def __post_init__(self):
        object.__setattr__(self, '_regex', re.compile(r'\b[0-9]{%d}\b' % self.length, re.ASCII))

    def candidates(self, text: str) -> Iterator[str]:
        for token in self._regex.finditer(text):
            yield token.group(0)


@dataclass(frozen=True)
class PatternTier:
    name: str
    confidence: Confidence
    rules: Tuple


TIERS: Tuple[PatternTier, ...] = (
    PatternTier('explicit_label', Confidence.HIGH, (
        # "verification code is 123456", "confirmation code: 789012"
        RegexRule(r'(?:verification|confirmation|security|auth(?:entication)?|one[- ]?time|2fa|two[- ]?factor|temporary)'
                  r'\s*code\s*(?:is|:|=)\s*([0-9]{4,8})'),
        # "your code is 123456"
        RegexRule(r'(?:your|the)\s+(?:verification\s+|security\s+|one[- ]?time\s+)?(?:code|otp|pin|passcode)'
                  r'\s*(?:is|:|=)\s*([0-9]{4,8})'),
        # "code: 123456", "PIN: 1234"
        RegexRule(r'\b(?:code|pin|otp|passcode)\s*[:=]\s*([0-9]{4,8})\b'),
        # "enter code 789012"
        RegexRule(r'(?:use|enter|input|type)\s+(?:this\s+|the\s+)?(?:code|otp|pin)\s*[:=]?\s*([0-9]{4,8})'),
        # "123456 is your code"
        RegexRule(r'\b([0-9]{4,8})\s+is\s+your\s+(?:verification\s+|security\s+)?(?:code|otp|pin)'),
        RegexRule(r'here\s+is\s+(?:your\s+)?(?:code|otp|pin)\s*[:=]?\s*([0-9]{4,8})'),
        RegexRule(r'code\s+to\s+(?:verify|confirm|complete|access)\s*[:=]?\s*([0-9]{4,8})'),
    )),
    PatternTier('labeled_separated', Confidence.HIGH, (
        # "code: 123-456", "code 123 456"
        RegexRule(r'\b(?:code|pin|otp|passcode)\s*[:=]?\s*([0-9]{3}[-\s][0-9]{3})\b'),
        # "pin 12-34-56"
        RegexRule(r'\b(?:code|pin|otp|passcode)\s*[:=]?\s*([0-9]{2}[-\s][0-9]{2}[-\s][0-9]{2})\b'),
    )),
    PatternTier('quoted', Confidence.HIGH, (
        RegexRule(r'["\']([0-9]{4,8})["\']'),
        RegexRule(r'\*+([0-9]{4,8})\*+'),
        RegexRule(r'(?:code|otp|pin|verification)[^0-9]{0,30}\[([0-9]{4,8})\]'),
    )),
    PatternTier('context_proximity', Confidence.MEDIUM, (
        RegexRule(r'(?:use\s+)?this\s+code.{1,300}?\b([0-9]{4,8})\b'),
        RegexRule(r'enter\s+(?:the\s+)?(?:following\s+)?code.{1,300}?\b([0-9]{4,8})\b'),
        RegexRule(r'\b([0-9]{4,8})\b.{1,100}?(?:will\s+)?expire'),
        RegexRule(r'expire.{1,100}?\b([0-9]{4,8})\b'),
        RegexRule(r'sign\s*(?:in|up).{1,250}?\b([0-9]{4,8})\b'),
        RegexRule(r'log\s*in.{1,250}?\b([0-9]{4,8})\b'),
        RegexRule(r'verification.{1,200}?\b([0-9]{4,8})\b'),
        RegexRule(r'one[- ]?time.{1,150}?\b([0-9]{4,8})\b'),
        RegexRule(r'\bcode\b[^0-9]{1,50}([0-9]{4,8})\b'),
    )),
    PatternTier('standalone_separated', Confidence.MEDIUM, (
        RegexRule(r'\b([0-9]{3}[-\s][0-9]{3})\b'),
        RegexRule(r'\b([0-9]{2}[-\s][0-9]{2}[-\s][0-9]{2})\b'),
        RegexRule(r'\b([0-9]{4}[-\s][0-9]{4})\b'),
    )),
    PatternTier('anchor_window', Confidence.MEDIUM, tuple(
        AnchorWindowRule(phrase) for phrase in (
            'this code', 'your code', 'the code', 'enter code', 'use code',
            'verification code', 'confirmation code', 'security code',
            'one-time code', 'access code', 'login code', 'otp',
        )
    )),
    # 6-digit codes are the most common format, then 4, 5, 8
    PatternTier('length_fallback', Confidence.LOW, tuple(
        FallbackLengthRule(length) for length in (6, 4, 5, 8)
    )),
)


def run_cascade(text: str, tiers: Tuple[PatternTier, ...] = TIERS) -> Optional[ResolvedCode]:
    """
    Evaluate tiers in order and return the first candidate that resolves.

    Args:
        text: Normalized text
        tiers: Ordered tier table

    Returns:
        ResolvedCode tagged with the winning tier's confidence, or None
    """
    for tier in tiers:
        for rule in tier.rules:
            for candidate in rule.candidates(text):
                code = resolve_candidate(candidate)
                if code:
                    logger.debug(f"Code matched by tier '{tier.name}' ({tier.confidence.value})")
                    return ResolvedCode(value=code, confidence=tier.confidence)
    return None


def extract_otp(text) -> Optional[ResolvedCode]:
    """
    Extract a one-time code from a single piece of text.

    Args:
        text: Raw subject or body (HTML allowed)

    Returns:
        ResolvedCode, or None if the text has no verification context or
        no candidate survives validation
    """
    clean = normalize_text(text)
    if not clean or not has_verification_context(clean):
        return None
    return run_cascade(clean)


def extract_otp_from_email(subject, body) -> Optional[ExtractionResult]:
    """
    Extract a one-time code from an email, subject first.

    The body is only examined when the subject yields nothing.

    Args:
        subject: Email subject (may be None)
        body: Email body, plain text or HTML (may be None)

    Returns:
        ExtractionResult tagged with its source, or None

    Example:
        >>> extract_otp_from_email("Your OTP is 294817", "")
        ExtractionResult(code='294817', confidence=<Confidence.HIGH: 'high'>, source=<Source.SUBJECT: 'subject'>)
    """
    for source, text in ((Source.SUBJECT, subject), (Source.BODY, body)):
        resolved = extract_otp(text)
        if resolved:
            return ExtractionResult(
                code=resolved.value,
                confidence=resolved.confidence,
                source=source,
            )
    return None
