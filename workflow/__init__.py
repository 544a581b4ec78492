"""
ESP example workflow: session state, step operations and settle strategies.
"""

from .service import (
    PreconditionError,
    RunReport,
    SessionState,
    StepResult,
    WorkflowRunner,
    select_first_sub_account,
    stats_window,
)
from .settle import FixedDelay, PollUntilReady, build_settle_strategy

__all__ = [
    'PreconditionError',
    'RunReport',
    'SessionState',
    'StepResult',
    'WorkflowRunner',
    'select_first_sub_account',
    'stats_window',
    'FixedDelay',
    'PollUntilReady',
    'build_settle_strategy',
]
