"""
FastAPI REST API for Hireloom assessments.

Provides endpoints for:
- Job and candidate management
- Building and sending aptitude tests
- Taking a test through a timed exam session
- Reviewing completed responses
"""

from .main import app

__all__ = ["app"]
