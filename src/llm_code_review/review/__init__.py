"""
Review Pipeline

This module provides the review orchestrator and reconciliation of
proposed comments against comments already on the pull request.
"""

from .reconciler import find_existing_comment
from .orchestrator import ReviewOrchestrator, run_review

__all__ = ['find_existing_comment', 'ReviewOrchestrator', 'run_review']
