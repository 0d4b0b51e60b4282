"""
LLM Code Review

Automated pull request review: parses a unified diff, applies custom
rules, asks an LLM for review comments and posts the new ones to GitHub.
"""

__version__ = "1.0.0"

from .api import ReviewService
from .config import AppConfig, load_config
from .review.orchestrator import ReviewOrchestrator, run_review

__all__ = ["ReviewService", "AppConfig", "load_config", "ReviewOrchestrator", "run_review"]
