"""
Reviews Module

Shared review/decision state machine used by registration applications,
amendments, complaints, trainer applications and compliance reports.
"""

from .workflow import InvalidStatusTransitionError, ReviewWorkflow

__all__ = ["InvalidStatusTransitionError", "ReviewWorkflow"]
