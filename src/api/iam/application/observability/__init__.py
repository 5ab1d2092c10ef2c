"""Domain-Oriented Observability for IAM application layer.

Probes for application service operations following Domain-Oriented Observability patterns.
"""

from iam.application.observability.assignment_executor_probe import (
    AssignmentExecutorProbe,
    DefaultAssignmentExecutorProbe,
)
from iam.application.observability.assignment_state_reader_probe import (
    AssignmentStateReaderProbe,
    DefaultAssignmentStateReaderProbe,
)
from iam.application.observability.batch_orchestrator_probe import (
    BatchOrchestratorProbe,
    DefaultBatchOrchestratorProbe,
)
from iam.application.observability.identifier_resolver_probe import (
    DefaultIdentifierResolverProbe,
    IdentifierResolverProbe,
)
from iam.application.observability.reconciliation_service_probe import (
    DefaultReconciliationServiceProbe,
    ReconciliationServiceProbe,
)

__all__ = [
    "AssignmentExecutorProbe",
    "DefaultAssignmentExecutorProbe",
    "AssignmentStateReaderProbe",
    "DefaultAssignmentStateReaderProbe",
    "BatchOrchestratorProbe",
    "DefaultBatchOrchestratorProbe",
    "IdentifierResolverProbe",
    "DefaultIdentifierResolverProbe",
    "ReconciliationServiceProbe",
    "DefaultReconciliationServiceProbe",
]
