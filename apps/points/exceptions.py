"""
Points engine exceptions.

Expected business outcomes (already applied, nothing to do) are never raised;
they are reported through ``AwardResult``. Only storage faults propagate to
callers.
"""


class PointsEngineError(Exception):
    """Base class for points engine errors"""


class LedgerWriteConflict(PointsEngineError):
    """A concurrent writer appended the same logical version first"""

    def __init__(self, submission_id, logical_version):
        self.submission_id = submission_id
        self.logical_version = logical_version
        super().__init__(
            f"Ledger version {logical_version} for submission {submission_id} already written"
        )


class StorageFault(PointsEngineError):
    """The ledger or submission storage failed; nothing was written"""

    user_message = 'Could not process points operation'


class MissingCalculatorConfiguration(PointsEngineError):
    """A domain has no usable points calculator configured"""

    def __init__(self, domain, detail=''):
        self.domain = domain
        message = f"No points calculator configured for domain '{domain}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)
