"""Application services for IAM bounded context.

Application services orchestrate domain objects and the directory gateway
to fulfill use cases. They are the "front door" to the IAM context.
"""

from iam.application.services.assignment_executor import AssignmentExecutor
from iam.application.services.assignment_state_reader import AssignmentStateReader
from iam.application.services.batch_orchestrator import (
    BatchOrchestrator,
    CancellationToken,
)
from iam.application.services.identifier_resolver import IdentifierResolver
from iam.application.services.reconciliation_service import ReconciliationService

__all__ = [
    "AssignmentExecutor",
    "AssignmentStateReader",
    "BatchOrchestrator",
    "CancellationToken",
    "IdentifierResolver",
    "ReconciliationService",
]
