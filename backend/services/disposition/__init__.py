"""
Withdrawal Support - Case Disposition Engine

Decides what should happen to withdrawal cases waiting in the workflow engine
by reconciling the workflow engine, the document case system and the
case-instance store.

Components:
- task_aggregator.py: BPM Follow-Up counts per case
- classifier.py: status/task based case categories
- reconciler.py: case-instance store cross-check with business-day staleness
- orchestrator.py: per-case decision and action bucket accumulation
- batch.py: batch runs with per-case error isolation
- mrt.py: MRT / approval waiting-event scan
- email_scan.py: email resolution waiting-case disposition
- data_entry.py: "Data entry" task presence lookup
- collaborators.py: external system interfaces and in-memory implementations

Usage:
    from services.disposition import BatchRunner, DispositionOrchestrator, CaseInstanceReconciler

    orchestrator = DispositionOrchestrator(CaseInstanceReconciler(store), workflow_client)
    runner = BatchRunner(workflow_client, case_client, orchestrator)
    result = await runner.run()
"""

from .models import (
    ActionBucket, ActionBuckets, BatchResult, CaseCategory, CaseContext, CaseDetails,
    CaseInstanceAnalysis, CaseInstanceRecord, CaseTask, DispositionResult, DispositionStatus,
    FollowUpSummary, InstanceTask, ProcessInstance, WaitingCase
)
from .collaborators import (
    CaseInstanceStore, CaseInstanceStoreError, CollaboratorError, DocumentCaseClient,
    DocumentCaseError, InMemoryCaseInstanceStore, InMemoryDocumentCaseClient,
    InMemoryWorkflowEngine, WorkflowEngineClient, WorkflowEngineError
)
from .task_aggregator import BpmTaskAggregator
from .classifier import StatusClassifier
from .reconciler import CaseInstanceReconciler
from .orchestrator import DispositionOrchestrator
from .batch import BatchRunner
from .mrt import MrtScanner, MrtScanResult
from .data_entry import DataEntryTaskLookup
from .email_scan import EmailCategory, EmailScanner

__all__ = [
    'ActionBucket', 'ActionBuckets', 'BatchResult', 'CaseCategory', 'CaseContext', 'CaseDetails',
    'CaseInstanceAnalysis', 'CaseInstanceRecord', 'CaseTask', 'DispositionResult', 'DispositionStatus',
    'FollowUpSummary', 'InstanceTask', 'ProcessInstance', 'WaitingCase',
    'CaseInstanceStore', 'CaseInstanceStoreError', 'CollaboratorError', 'DocumentCaseClient',
    'DocumentCaseError', 'InMemoryCaseInstanceStore', 'InMemoryDocumentCaseClient',
    'InMemoryWorkflowEngine', 'WorkflowEngineClient', 'WorkflowEngineError',
    'BpmTaskAggregator',
    'StatusClassifier',
    'CaseInstanceReconciler',
    'DispositionOrchestrator',
    'BatchRunner',
    'MrtScanner', 'MrtScanResult',
    'DataEntryTaskLookup',
    'EmailCategory', 'EmailScanner',
]
