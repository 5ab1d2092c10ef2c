"""Role-assignment reconciliation presentation layer."""

from iam.presentation.assignments.routes import router

__all__ = ["router"]
