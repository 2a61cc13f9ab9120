"""
Tests for email parsing service.
"""

import sys
import os

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

from services import email


class TestExtractEmailBody:
    """Test subject and body extraction from MIME content."""

    def test_extract_multipart_alternative_email(self):
        """Test extracting text and HTML from multipart/alternative email."""
        email_content = b"""From: noreply@example.com
To: user@yourdomain.com
Subject: Your login code
MIME-Version: 1.0
Content-Type: multipart/alternative; boundary="boundary123"

--boundary123
Content-Type: text/plain; charset="UTF-8"

Your login code is 482913.

--boundary123
Content-Type: text/html; charset="UTF-8"

<html><body><p>Your login code is <strong>482913</strong>.</p></body></html>

--boundary123--
"""

        result = email.extract_email_body(email_content)

        assert result['subject'] == 'Your login code'
        assert 'code is 482913' in result['text_body']
        assert '<strong>482913</strong>' in result['html_body']

    def test_extract_simple_text_email(self):
        email_content = b"""From: noreply@example.com
Subject: Simple Test
Content-Type: text/plain; charset="UTF-8"

Code: 739184
This is line 2.
"""

        result = email.extract_email_body(email_content)

        assert 'Code: 739184' in result['text_body']
        assert 'line 2' in result['text_body']
        assert result['html_body'] == ''

    def test_extract_simple_html_email(self):
        email_content = b"""From: noreply@example.com
Subject: HTML Test
Content-Type: text/html; charset="UTF-8"

<html><body><p>Code: <b>739184</b></p></body></html>
"""

        result = email.extract_email_body(email_content)

        assert result['text_body'] == ''
        assert '<b>739184</b>' in result['html_body']

    def test_extract_base64_body(self):
        # "Your code is 739184" in base64
        email_content = b"""From: noreply@example.com
Subject: Encoded
MIME-Version: 1.0
Content-Type: text/plain; charset="UTF-8"
Content-Transfer-Encoding: base64

WW91ciBjb2RlIGlzIDczOTE4NA==
"""

        result = email.extract_email_body(email_content)

        assert result['text_body'].strip() == 'Your code is 739184'

    def test_extract_quoted_printable_html(self):
        email_content = b"""From: noreply@example.com
Subject: QP
MIME-Version: 1.0
Content-Type: text/html; charset="UTF-8"
Content-Transfer-Encoding: quoted-printable

<p style=3D"color:#393939">Code: 739184</p>
"""

        result = email.extract_email_body(email_content)

        assert 'style="color:#393939"' in result['html_body']

    def test_attachments_skipped(self):
        email_content = b"""From: noreply@example.com
Subject: With attachment
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="mixed"

--mixed
Content-Type: text/plain; charset="UTF-8"

Your code is 739184.

--mixed
Content-Type: text/plain; charset="UTF-8"
Content-Disposition: attachment; filename="terms.txt"

Reference 555123

--mixed--
"""

        result = email.extract_email_body(email_content)

        assert 'Your code is 739184' in result['text_body']
        assert '555123' not in result['text_body']

    def test_first_text_part_wins(self):
        email_content = b"""From: noreply@example.com
Subject: Two parts
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="mixed"

--mixed
Content-Type: text/plain; charset="UTF-8"

First part

--mixed
Content-Type: text/plain; charset="UTF-8"

Second part

--mixed--
"""

        result = email.extract_email_body(email_content)

        assert 'First part' in result['text_body']
        assert 'Second part' not in result['text_body']

    def test_unknown_content_type(self):
        email_content = b"""From: noreply@example.com
Subject: Binary
Content-Type: application/octet-stream

AAAA
"""

        result = email.extract_email_body(email_content)

        assert result['text_body'] == ''
        assert result['html_body'] == ''

    def test_missing_subject(self):
        result = email.extract_email_body(b"From: noreply@example.com\n\nCode: 739184\n")

        assert result['subject'] == ''
        assert 'Code: 739184' in result['text_body']
