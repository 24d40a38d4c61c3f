"""
Batch captioning sub-modules.

Chunk planning, job submission, status polling and result
reconciliation for the provider's asynchronous Batch API.
"""

from .models import (
    Chunk,
    JobHandle,
    JobRequest,
    JobStatus,
    JobStatusSnapshot,
    RequestCounts,
    ResultRecord,
)
from .chunk_planner import plan_chunks, estimated_encoded_size
from .job_submitter import JobSubmitter
from .job_monitor import JobMonitor
from .result_reconciler import ResultReconciler, ReconcileReport, parse_result_lines
from .orchestrator import BatchOrchestrator, BatchRunReport

__all__ = [
    # Models
    'Chunk',
    'JobHandle',
    'JobRequest',
    'JobStatus',
    'JobStatusSnapshot',
    'RequestCounts',
    'ResultRecord',
    # Planning
    'plan_chunks',
    'estimated_encoded_size',
    # Job lifecycle
    'JobSubmitter',
    'JobMonitor',
    'ResultReconciler',
    'ReconcileReport',
    'parse_result_lines',
    # Orchestrator
    'BatchOrchestrator',
    'BatchRunReport',
]
