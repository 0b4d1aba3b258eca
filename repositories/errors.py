"""
Exceptions raised by repositories when an in-transaction re-check fails.
"""


class PredictorConflictError(ValueError):
    """
    A precondition no longer held once the write lock was taken.

    code is one of the services.error_codes constants so the service layer can
    surface it unchanged.
    """

    def __init__(self, message: str, code: str):
        super().__init__(message)
        self.code = code
