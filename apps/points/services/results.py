"""
Outcome of awarding engine operations.

Expected business outcomes are values, not exceptions.
"""
from dataclasses import dataclass
from enum import Enum


class Outcome(str, Enum):
    APPLIED = 'applied'
    ALREADY_APPLIED = 'already_applied'
    ADJUSTED = 'adjusted'
    NO_OP = 'no_op'
    INVALID = 'invalid'


@dataclass(frozen=True)
class AwardResult:
    outcome: Outcome
    submission_id: int
    amount: int = 0
    entry_id: int = None
    message: str = ''

    @property
    def wrote_entry(self):
        return self.entry_id is not None

    @property
    def is_applied(self):
        return self.outcome in (Outcome.APPLIED, Outcome.ADJUSTED)

    def as_dict(self):
        return {
            'outcome': self.outcome.value,
            'submission_id': self.submission_id,
            'amount': self.amount,
            'entry_id': self.entry_id,
            'message': self.message,
        }
