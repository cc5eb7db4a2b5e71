from .mixins import (
    ActivatableMixin,
    AuditableMixin,
    DescribedModelMixin,
    NamedModelMixin,
    TimestampedMixin,
)

__all__ = [
    "TimestampedMixin",
    "NamedModelMixin",
    "DescribedModelMixin",
    "ActivatableMixin",
    "AuditableMixin",
]
