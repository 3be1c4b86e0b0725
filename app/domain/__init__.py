"""Domain layer: exceptions shared by application and infrastructure.

No dependencies on infrastructure or presentation.
"""

from app.domain.exceptions import DealerException, ValidationException

__all__ = [
    "DealerException",
    "ValidationException",
]
