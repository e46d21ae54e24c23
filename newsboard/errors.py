import logging
from contextlib import contextmanager

from django.db import DatabaseError, IntegrityError


logger = logging.getLogger(__name__)


# ========== error kinds raised by the data access functions ==========

class DataAccessError(Exception):
    """Base class for every error the data access functions raise."""


class NotFound(DataAccessError):
    """A referenced user or content item does not exist."""


class ConstraintViolation(DataAccessError):
    """A required field is missing or malformed, or a uniqueness constraint failed.

    When raised from model validation, 'errors' holds Django's message dict, e.g.
    {'title': ['This field cannot be blank.']}.
    """
    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}


class DuplicateVote(DataAccessError):
    """The user has already voted on this content item."""


class ProviderError(DataAccessError):
    """The database failed for reasons unrelated to the request itself."""


@contextmanager
def provider_errors(operation):
    """Translate database exceptions escaping 'operation' into DataAccessErrors.

    Errors the caller already translated pass through untouched. Anything left over is either an
    integrity failure (ConstraintViolation) or an opaque provider failure (ProviderError).
    """
    try:
        yield
    except DataAccessError:
        raise
    except IntegrityError as e:
        logger.info('%s rejected by the database: %s', operation, e)
        raise ConstraintViolation('{} violates a database constraint: {}'.format(operation, e)) from e
    except DatabaseError as e:
        logger.exception('%s failed in the database', operation)
        raise ProviderError('{} failed: {}'.format(operation, e)) from e


def constraint_violation_from(validation_error, what):
    """Build a ConstraintViolation from a django.core.exceptions.ValidationError."""
    errors = getattr(validation_error, 'message_dict', None) or {'__all__': validation_error.messages}
    details = '; '.join('{}: {}'.format(field, ' '.join(messages))
                        for field, messages in sorted(errors.items()))
    return ConstraintViolation('Invalid {}: {}'.format(what, details), errors=errors)
