"""
Pytest configuration and fixtures for all tests.
"""

import os
import sys
import pytest

# Add src to Python path before any imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '../src'))

# Set up test environment variables before importing any modules
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-west-2')
os.environ.setdefault('ENVIRONMENT', 'test')
os.environ.setdefault('LOG_LEVEL', 'INFO')


@pytest.fixture
def otp_email_content():
    """Multipart email with the code in the HTML part only."""
    return b"""From: noreply@example.com
To: user@yourdomain.com
Subject: Confirm your sign-in
MIME-Version: 1.0
Content-Type: multipart/alternative; boundary="boundary123"

--boundary123
Content-Type: text/html; charset="UTF-8"

<html><body><p>Your verification code is <strong>482913</strong>.</p>
<p style="color:#393939">It expires in 10 minutes.</p></body></html>

--boundary123--
"""


@pytest.fixture
def plain_email_content():
    """Email without any verification vocabulary."""
    return b"""From: news@example.com
To: user@yourdomain.com
Subject: Monthly newsletter
Content-Type: text/plain; charset="UTF-8"

We shipped 482913 parcels this quarter. Thanks for reading!
"""
