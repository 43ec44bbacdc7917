"""
Core module - Provider orchestration and capture completion.
"""

from .orchestrator import UploadOrchestrator, ProviderState
from .capture import CaptureSession

__all__ = [
    "UploadOrchestrator",
    "ProviderState",
    "CaptureSession",
]
