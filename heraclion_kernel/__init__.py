"""
Heraclion Kernel

The persistence core of the Heraclion invoicing back office:
- Sequential document numbering (PREFIX-YEAR-COUNTER)
- Cash register ledger with soft delete and month archiving
- Payroll entries mirrored into the cash register atomically
- Generic trash with schema-checked restore
"""

__version__ = "0.1.0"
