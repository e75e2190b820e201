class MatrixAuditError(Exception):
    """Base class for failures that stop an audit run."""


class InputValidationError(MatrixAuditError):
    pass


class DirectoryError(MatrixAuditError):
    pass


class MailError(MatrixAuditError):
    pass


class ResolutionBatchError(MatrixAuditError):
    """
    Raised once per batch when any lookup failed.
    `failures` maps each failing key to its reason; the message joins them all.
    """

    def __init__(self, failures):
        self.failures = dict(failures)
        lines = [f"{key}: {reason}" for key, reason in self.failures.items()]
        super().__init__(
            f"{len(lines)} directory lookup(s) failed:\n" + "\n".join(lines)
        )
