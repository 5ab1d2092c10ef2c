"""Canonical resource name (GRN) definitions.

Defines resource types and the hierarchical name format used by the
platform to reference roles, scope groups, workspaces and principals.
These helpers ensure type safety and prevent hand-built identifier strings
across the codebase.

Format::

    grn:<partition>:<service>:<region>:<tenant>:<resource_type>/<resource_id>

Segments other than the resource type and id may be empty for global
resources (e.g. platform-defined roles carry no region or tenant).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

GRN_PREFIX = "grn"


class ResourceType(StrEnum):
    """Platform resource types that may appear in a GRN."""

    ROLE = "role"
    SCOPE_GROUP = "scope-group"


@dataclass(frozen=True)
class GRN:
    """Parsed hierarchical resource name.

    Attributes:
        partition: Platform partition (usually empty)
        service: Owning service (e.g. "iam", "internal", "backup")
        region: Owning region, empty for global resources
        tenant: Owning tenant, empty for platform-defined resources
        resource_type: The kind of resource
        resource_id: The resource's stable identifier
    """

    partition: str
    service: str
    region: str
    tenant: str
    resource_type: str
    resource_id: str

    def __str__(self) -> str:
        """Return the canonical string form."""
        return (
            f"{GRN_PREFIX}:{self.partition}:{self.service}:{self.region}:"
            f"{self.tenant}:{self.resource_type}/{self.resource_id}"
        )

    @classmethod
    def parse(cls, value: str) -> GRN:
        """Parse a GRN string.

        Args:
            value: GRN string

        Returns:
            GRN instance

        Raises:
            ValueError: If value is not a well-formed GRN
        """
        parts = value.split(":", 5)
        if len(parts) != 6 or parts[0] != GRN_PREFIX:
            raise ValueError(f"Invalid GRN: {value}")

        _, partition, service, region, tenant, resource = parts
        resource_type, sep, resource_id = resource.partition("/")
        if not sep or not resource_type or not resource_id:
            raise ValueError(f"Invalid GRN: {value}")

        return cls(
            partition=partition,
            service=service,
            region=region,
            tenant=tenant,
            resource_type=resource_type,
            resource_id=resource_id,
        )


def format_grn(
    resource_type: ResourceType,
    resource_id: str,
    *,
    service: str,
    tenant: str = "",
    region: str = "",
    partition: str = "",
) -> str:
    """Format a canonical resource name.

    Args:
        resource_type: The type of resource
        resource_id: The unique identifier for the resource
        service: The owning service segment
        tenant: The owning tenant (empty for global resources)
        region: The owning region (empty for global resources)
        partition: The platform partition

    Returns:
        Formatted GRN string

    Example:
        >>> format_grn(ResourceType.SCOPE_GROUP, "sg-1", service="iam",
        ...            tenant="acme", region="us-east-1")
        'grn::iam:us-east-1:acme:scope-group/sg-1'
    """
    return str(
        GRN(
            partition=partition,
            service=service,
            region=region,
            tenant=tenant,
            resource_type=str(resource_type),
            resource_id=resource_id,
        )
    )
