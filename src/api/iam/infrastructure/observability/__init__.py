"""Domain-Oriented Observability for IAM infrastructure.

Probes for identity platform calls following Domain-Oriented Observability patterns.
"""

from iam.infrastructure.observability.platform_client_probe import (
    DefaultPlatformClientProbe,
    PlatformClientProbe,
)

__all__ = [
    "PlatformClientProbe",
    "DefaultPlatformClientProbe",
]
