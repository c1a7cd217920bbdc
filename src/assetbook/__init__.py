"""Portfolio consolidation, valuation and deposit-accrual engine."""

__version__ = "0.1.0"
