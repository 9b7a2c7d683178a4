"""Cohesio payroll and leave-accrual computation engine."""

__version__ = "1.0.0"
