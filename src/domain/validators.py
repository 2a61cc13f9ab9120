"""
False-positive filters for one-time code candidates.

A candidate is a valid OTP only if it survives every rule in RULES, checked
in order. is_valid_otp() and get_validation_failure_reason() both walk the
same list, so the boolean answer and the reported reason cannot disagree.
"""

import re
from typing import Callable, List, NamedTuple, Optional

VALID = 'valid'
INVALID_INPUT = 'invalid_input'

MIN_LENGTH = 4
MAX_LENGTH = 8

SEQUENTIAL_PATTERNS = (
    '0123', '1234', '2345', '3456', '4567', '5678', '6789',
    '9876', '8765', '7654', '6543', '5432', '4321', '3210',
    '012345', '123456', '234567', '345678', '456789',
    '987654', '876543', '765432', '654321', '543210',
)

_MONTH = r'(?:0[1-9]|1[0-2])'
_DAY = r'(?:0[1-9]|[12][0-9]|3[01])'
_YEAR4 = r'(?:19|20)[0-9]{2}'

# MMDDYY, DDMMYY, YYMMDD, MMDDYYYY, DDMMYYYY, YYYYMMDD
DATE_PATTERNS = tuple(
    re.compile(pattern) for pattern in (
        _MONTH + _DAY + r'[0-9]{2}',
        _DAY + _MONTH + r'[0-9]{2}',
        r'[0-9]{2}' + _MONTH + _DAY,
        _MONTH + _DAY + _YEAR4,
        _DAY + _MONTH + _YEAR4,
        _YEAR4 + _MONTH + _DAY,
    )
)

YEAR_MIN = 1900
YEAR_MAX = 2100

CSS_UNITS = ('PX', 'EM', 'REM', 'PT', 'VH', 'VW', 'CH', 'EX', 'CM', 'MM', 'IN', 'PC')

COMMON_COLORS = frozenset({
    '000000', 'FFFFFF', '333333', '666666', '999999', 'CCCCCC',
    'FF0000', '00FF00', '0000FF', 'FFFF00', 'FF00FF', '00FFFF',
    '808080', 'C0C0C0', '800000', '008000', '000080', '800080',
})

_SEPARATORS_RE = re.compile(r'[-\s]')
_ALNUM_RE = re.compile(r'[A-Z0-9]+')
_NUMERIC_RE = re.compile(r'[0-9]+')
_ALL_ZEROS_RE = re.compile(r'0+')
_REPETITIVE_RE = re.compile(r'(.)\1+')
_LETTER_RE = re.compile(r'[A-Z]')
_DIGIT_RE = re.compile(r'[0-9]')
_CSS_VALUE_RE = re.compile(r'[0-9]+(?:' + '|'.join(CSS_UNITS) + r')')
_HEX_RE = re.compile(r'[0-9A-F]{6}')
_REPEATED_PAIR_RE = re.compile(r'([0-9A-F]{2})\1\1')
_GRAYSCALE_RE = re.compile(r'([0-9A-F])([0-9A-F])\1\2\1\2')


class ValidationRule(NamedTuple):
    """A named rejection rule; rejects(code) is True when code fails it."""
    name: str
    rejects: Callable[[str], bool]


def _is_numeric(code: str) -> bool:
    return _NUMERIC_RE.fullmatch(code) is not None


def _is_sequential(code: str) -> bool:
    # Containment, not equality: any code embedding a run is rejected.
    return any(pattern in code for pattern in SEQUENTIAL_PATTERNS)


def _is_date(code: str) -> bool:
    if len(code) not in (6, 8) or not _is_numeric(code):
        return False
    return any(pattern.fullmatch(code) for pattern in DATE_PATTERNS)


def _is_year(code: str) -> bool:
    if len(code) != 4 or not _is_numeric(code):
        return False
    return YEAR_MIN <= int(code) <= YEAR_MAX


def _has_no_digits(code: str) -> bool:
    return bool(_LETTER_RE.search(code)) and not _DIGIT_RE.search(code)


def _is_color_code(code: str) -> bool:
    if not _HEX_RE.fullmatch(code):
        return False
    if _REPEATED_PAIR_RE.fullmatch(code) or _GRAYSCALE_RE.fullmatch(code):
        return True
    return code in COMMON_COLORS


RULES: List[ValidationRule] = [
    ValidationRule('too_short', lambda code: len(code) < MIN_LENGTH),
    ValidationRule('too_long', lambda code: len(code) > MAX_LENGTH),
    ValidationRule('not_alphanumeric', lambda code: _ALNUM_RE.fullmatch(code) is None),
    ValidationRule('all_zeros', lambda code: _ALL_ZEROS_RE.fullmatch(code) is not None),
    ValidationRule('sequential', _is_sequential),
    ValidationRule('repetitive', lambda code: _REPETITIVE_RE.fullmatch(code) is not None),
    ValidationRule('date', _is_date),
    ValidationRule('year', _is_year),
    ValidationRule('no_digits', _has_no_digits),
    ValidationRule('css_value', lambda code: _CSS_VALUE_RE.fullmatch(code) is not None),
    ValidationRule('color_code', _is_color_code),
]


def normalize_code(code: str) -> str:
    """
    Strip spaces and dashes and upper-case ASCII letters.

    Non-ASCII input is left as is; it fails the alphanumeric rule anyway.
    """
    cleaned = _SEPARATORS_RE.sub('', code)
    return cleaned.upper() if cleaned.isascii() else cleaned


def _first_failure(code) -> Optional[str]:
    if not isinstance(code, str) or not code:
        return INVALID_INPUT

    cleaned = normalize_code(code)
    for rule in RULES:
        if rule.rejects(cleaned):
            return rule.name
    return None


def is_valid_otp(code) -> bool:
    """
    Check whether a code is likely a legitimate OTP.

    Args:
        code: Candidate code (spaces and dashes are ignored)

    Returns:
        True if no rejection rule fires

    Example:
        >>> is_valid_otp("A1B2C3")
        True
        >>> is_valid_otp("123456")
        False
    """
    return _first_failure(code) is None


def get_validation_failure_reason(code) -> str:
    """
    Name the first rule a code fails, for debugging and telemetry.

    Args:
        code: Candidate code

    Returns:
        The failing rule name (e.g. "sequential", "date"), or "valid"
    """
    return _first_failure(code) or VALID
