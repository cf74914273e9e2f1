"""
Trials module.

One-time trial for new subjects and one-time grace after a trial expires.

Public API:
- ITrialManager: Interface
- TrialEligibility: Model
- TrialAlreadyGrantedError, GraceIneligibleError: Exceptions
"""

from .interfaces import ITrialManager
from .models import TrialEligibility, TrialGrantResponse
from .exceptions import TrialError, TrialAlreadyGrantedError, GraceIneligibleError

__all__ = [
    "ITrialManager",
    "TrialEligibility",
    "TrialGrantResponse",
    "TrialError",
    "TrialAlreadyGrantedError",
    "GraceIneligibleError",
]
