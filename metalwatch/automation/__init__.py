"""
Polling automation: refresh gating, session state, scheduling and the tracker service.
"""
from .rate_controller import RateController, RefreshDecision, RefreshState, QuotaState
from .state import SessionState
from .scheduler import Scheduler
from .tracker import MetalTracker, AnalysisSnapshot, PollResult, PollStatus

__all__ = [
    'RateController',
    'RefreshDecision',
    'RefreshState',
    'QuotaState',
    'SessionState',
    'Scheduler',
    'MetalTracker',
    'AnalysisSnapshot',
    'PollResult',
    'PollStatus',
]
