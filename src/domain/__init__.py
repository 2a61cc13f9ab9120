"""
Domain layer for OTP extraction business logic.

This layer contains:
- Data models (type-safe structures)
- Validators (false-positive filter chain)
- OTP extractor (pure pattern cascade, no I/O)
- Email processor (SES record to extraction result pipeline)
"""
