"""
Field accessors for submission data.

Domains keep their valuation and rejection reason either in dedicated
model columns or in the generic ``metadata`` JSON storage. Every consumer
goes through a FieldAccessor so it does not care which backend a domain uses.
"""
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation

from .models import Submission

REJECTION_REASON_FIELD = 'rejection_reason'


class FieldAccessor(ABC):
    """Read/write access to a submission's authored fields"""

    backend_name = None

    @abstractmethod
    def get_value(self, submission, field_name):
        """Return the stored value or None"""

    @abstractmethod
    def set_value(self, submission, field_name, value, silent=False):
        """
        Persist a value.

        A silent write bypasses ``post_save`` so it is not reported back to
        the event sources; the points engine writes silently.
        """

    def get_valuation(self, submission, field_name):
        """Numeric valuation as Decimal, None when missing or not numeric"""
        value = self.get_value(submission, field_name)
        if value is None or value == '':
            return None
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError):
            return None

    def get_rejection_reason(self, submission):
        return self.get_value(submission, REJECTION_REASON_FIELD) or ''

    def set_rejection_reason(self, submission, reason, silent=True):
        return self.set_value(submission, REJECTION_REASON_FIELD, reason or '', silent=silent)


class ColumnFieldAccessor(FieldAccessor):
    """Fields stored as regular Submission columns"""

    backend_name = 'column'

    def get_value(self, submission, field_name):
        return getattr(submission, field_name, None)

    def set_value(self, submission, field_name, value, silent=False):
        setattr(submission, field_name, value)
        if silent:
            Submission.objects.filter(pk=submission.pk).update(**{field_name: value})
        else:
            submission.save(update_fields=[field_name, 'updated_at'])
        return True


class MetadataFieldAccessor(FieldAccessor):
    """Fields stored in the generic ``metadata`` JSON column"""

    backend_name = 'metadata'

    def get_value(self, submission, field_name):
        return (submission.metadata or {}).get(field_name)

    def set_value(self, submission, field_name, value, silent=False):
        metadata = dict(submission.metadata or {})
        if isinstance(value, Decimal):
            value = str(value)
        metadata[field_name] = value
        submission.metadata = metadata
        if silent:
            Submission.objects.filter(pk=submission.pk).update(metadata=metadata)
        else:
            submission.save(update_fields=['metadata', 'updated_at'])
        return True


FIELD_ACCESSORS = {
    ColumnFieldAccessor.backend_name: ColumnFieldAccessor,
    MetadataFieldAccessor.backend_name: MetadataFieldAccessor,
}


def get_field_accessor(backend='column'):
    """Return the accessor for a storage backend name"""
    try:
        return FIELD_ACCESSORS[backend]()
    except KeyError:
        raise ValueError(f"Unknown field storage backend: {backend}")
