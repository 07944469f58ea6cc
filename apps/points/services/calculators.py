"""
Domain point calculators.

Each domain maps a submission to a non-negative integer number of points,
either a fixed value or a formula over the submission's valuation field.
Formula calculators are pure functions of the valuation, so recomputing
with an unchanged valuation yields the same points.
"""
import logging
from abc import ABC, abstractmethod
from decimal import Decimal, ROUND_HALF_UP

from ..exceptions import MissingCalculatorConfiguration

logger = logging.getLogger(__name__)

RULE_FIXED_VALUE = 'fixed_value'
RULE_FLOOR_DIVISION = 'floor_division'
RULE_FLOOR_DIVISION_10 = 'floor_division_10'
RULE_PERCENTAGE = 'percentage'


class PointsCalculator(ABC):
    """Maps a submission to points"""

    @abstractmethod
    def compute(self, submission):
        """Return points as a non-negative int"""


class FixedPointsCalculator(PointsCalculator):
    """Same points for every submission of the domain"""

    def __init__(self, value):
        if value < 0:
            raise ValueError("Fixed points value must not be negative")
        self.value = int(value)

    def compute(self, submission):
        return self.value

    def __repr__(self):
        return f"FixedPointsCalculator({self.value})"


class FormulaPointsCalculator(PointsCalculator):
    """Points derived from the submission's valuation field"""

    def __init__(self, field_accessor, field_name, fn):
        self.field_accessor = field_accessor
        self.field_name = field_name
        self.fn = fn

    def compute(self, submission):
        value = self.field_accessor.get_valuation(submission, self.field_name)
        if value is None or value <= 0:
            return 0
        return max(0, int(self.fn(value)))

    def __repr__(self):
        return f"FormulaPointsCalculator({self.field_name!r})"


class ZeroPointsCalculator(PointsCalculator):
    """Stand-in for a domain without calculator configuration"""

    def __init__(self, domain):
        self.domain = domain

    def compute(self, submission):
        logger.warning(
            "No points calculator for domain '%s'; submission %s gets 0 points",
            self.domain, getattr(submission, 'pk', None)
        )
        return 0


def floor_division(divisor):
    """floor(value / divisor), e.g. 10 CZK = 1 point"""
    divisor = Decimal(divisor)

    def calculate(value):
        return int(Decimal(value) // divisor)
    return calculate


def percentage(rate):
    """round(value * rate)"""
    rate = Decimal(str(rate))

    def calculate(value):
        return int((Decimal(value) * rate).quantize(Decimal('1'), rounding=ROUND_HALF_UP))
    return calculate


def build_calculator(domain, config, field_accessor):
    """
    Build the calculator declared by a domain's configuration.

    Raises MissingCalculatorConfiguration when the rule is absent, unknown
    or lacks the parameters it needs.
    """
    rule = config.get('calculation_rule')
    if not rule:
        raise MissingCalculatorConfiguration(domain, 'calculation_rule is not set')

    if rule == RULE_FIXED_VALUE:
        if config.get('default_points') is None:
            raise MissingCalculatorConfiguration(domain, 'default_points is required for fixed_value')
        return FixedPointsCalculator(config['default_points'])

    if rule in (RULE_FLOOR_DIVISION, RULE_FLOOR_DIVISION_10, RULE_PERCENTAGE):
        field_name = config.get('valuation_field')
        if not field_name:
            raise MissingCalculatorConfiguration(domain, f'valuation_field is required for {rule}')

        if rule == RULE_PERCENTAGE:
            fn = percentage(config.get('percentage', 1))
        else:
            divisor = 10 if rule == RULE_FLOOR_DIVISION_10 else config.get('divisor', 10)
            if not divisor or int(divisor) <= 0:
                raise MissingCalculatorConfiguration(domain, 'divisor must be a positive integer')
            fn = floor_division(divisor)
        return FormulaPointsCalculator(field_accessor, field_name, fn)

    raise MissingCalculatorConfiguration(domain, f'unknown calculation rule {rule!r}')
