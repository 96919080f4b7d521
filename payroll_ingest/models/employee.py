from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any

"""Canonical employee salary record produced by the ingestion pipeline.

Spreadsheet rows arrive as loosely shaped header -> cell dicts. They are
mapped onto the closed set of fields below at the boundary so that the rest
of the package only deals with typed records.
"""

__all__ = [
    "EmployeeField",
    "EmployeeRecord",
]


class EmployeeField(Enum):
    """Canonical field identifiers.

    The value is the wire name used in serialized records and in the
    ``field`` of validation errors.
    """
    SN = "sn"
    EMPLOYEE_ID = "employeeId"
    NAME = "name"
    DESIGNATION = "designation"
    DEPARTMENT = "department"
    PAN_NUMBER = "panNumber"
    ACCOUNT_NUMBER = "accountNumber"
    SALARY_PERIOD = "salaryPeriod"
    ALLOWANCE = "allowance"
    BHADI = "bhadi"
    TOTAL = "total"
    RATE = "rate"
    GROSS_AMOUNT = "grossAmount"
    TAX = "tax"
    NET_PAYABLE = "netPayable"

    @property
    def attribute(self) -> str:
        """Name of the matching EmployeeRecord attribute."""
        return self.name.lower()

    @property
    def is_numeric(self) -> bool:
        return self in _NUMERIC_FIELDS


_NUMERIC_FIELDS = frozenset({
    EmployeeField.SN,
    EmployeeField.ALLOWANCE,
    EmployeeField.BHADI,
    EmployeeField.TOTAL,
    EmployeeField.RATE,
    EmployeeField.GROSS_AMOUNT,
    EmployeeField.TAX,
    EmployeeField.NET_PAYABLE,
})


@dataclass(frozen=True)
class EmployeeRecord:
    """One validated salary row.

    ``name`` is never empty. Absent strings are "" and absent amounts are 0.
    """
    sn: int | float
    name: str
    employee_id: str = ""
    designation: str = ""
    department: str = ""
    pan_number: str = ""  # PAN, primary natural key
    account_number: str = ""  # fallback natural key
    salary_period: str = ""
    allowance: float = 0
    bhadi: float = 0  # supplemental allowance
    total: float = 0
    rate: float = 0
    gross_amount: float = 0
    tax: float = 0
    net_payable: float = 0

    @property
    def natural_key(self) -> str:
        """Key used for duplicate detection: PAN, else account number."""
        return self.pan_number or self.account_number

    def to_dict(self) -> dict[str, Any]:
        values = asdict(self)
        return {f.value: values[f.attribute] for f in EmployeeField}
