"""
Service functions for Lambda handler operations.

This package contains the I/O around OTP extraction: MIME parsing and
Amazon S3 access.
"""

__all__ = ['email', 's3']
