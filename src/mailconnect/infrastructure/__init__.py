"""Infrastructure layer - External dependencies and implementations.

This layer contains all external dependencies including:
- Database adapters (SQLAlchemy)
- SMTP transport (aiosmtplib)
- API routes (FastAPI)
- The daily log cleanup scheduler
"""
