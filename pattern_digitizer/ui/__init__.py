"""Browser-facing state: preview handles, per-session workflow, results view model."""

from pattern_digitizer.ui.preview import PreviewRegistry
from pattern_digitizer.ui.results import ResultView, build_result_view
from pattern_digitizer.ui.session import DigitizeSession, SessionStore, WorkflowState

__all__ = [
    "DigitizeSession",
    "PreviewRegistry",
    "ResultView",
    "SessionStore",
    "WorkflowState",
    "build_result_view",
]
