"""
External Jobs Module.

Fabrication work ordered from third-party partners for an order, with its
own status machine gated by per-status attachment minimums.
"""

from mfg_modules.external_jobs.service import ExternalJobService
from mfg_modules.external_jobs.workflows import EXTERNAL_JOB_WORKFLOW, status_action

__all__ = [
    "EXTERNAL_JOB_WORKFLOW",
    "ExternalJobService",
    "status_action",
]
