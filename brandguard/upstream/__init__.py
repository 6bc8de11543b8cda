"""
Client side of the external evaluate / fix workflow engine.
"""

from .orchestrator import UpstreamOrchestrator, extract_result_url

__all__ = [
    "UpstreamOrchestrator",
    "extract_result_url",
]
