"""Exceptions raised by the repository layer."""


class RepositoryError(RuntimeError):
    """Base class for all repository errors.

    Driver exceptions (constraint violations, connection failures) are not
    wrapped and propagate unchanged, except inside ``insert_batch``.
    """


class ConfigurationError(RepositoryError):
    """Raised for an unsupported database URL or dialect."""


class MappingError(RepositoryError):
    """Raised when an entity is not mapped or a column is unknown."""


class TransactionError(RepositoryError):
    """Raised when a transaction is opened twice or ended twice."""


class BatchError(RepositoryError):
    """Raised when the driver fails during a batch insert.

    The batch transaction has already been rolled back when this is raised.
    The driver exception is available as ``__cause__``.
    """
