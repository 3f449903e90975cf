"""Read-only query selectors returning DTOs."""

from heraclion_kernel.selectors.cash_selector import CashSelector
from heraclion_kernel.selectors.payroll_selector import PayrollSelector

__all__ = ["CashSelector", "PayrollSelector"]
