from __future__ import annotations

from ..models.employee import EmployeeField

"""Header vocabulary of the salary sheet.

The sheet headers are Nepali typed with the Preeti font, so they are stored
here exactly as the keystrokes appear in the file. Lookup trims the header
first; anything not listed is ignored.
"""

__all__ = [
    "COLUMN_MAP",
    "EXPECTED_HEADERS",
    "lookup_field",
]

COLUMN_MAP: dict[str, EmployeeField] = {
    "l;=g++": EmployeeField.SN,  # सि.नं.
    "gfdy/": EmployeeField.NAME,  # नामथर
    "kb": EmployeeField.DESIGNATION,  # पद
    "sfo{/t ljefu": EmployeeField.DEPARTMENT,  # कार्यरत विभाग
    "kfg g+=": EmployeeField.PAN_NUMBER,  # पान नं.
    "vftf g+=": EmployeeField.ACCOUNT_NUMBER,  # खाता नं.
    ">fj)f": EmployeeField.ALLOWANCE,
    "efb|": EmployeeField.BHADI,
    "hDdf": EmployeeField.TOTAL,  # जम्मा
    "b/": EmployeeField.RATE,  # दर
    "kfpg] /sd": EmployeeField.GROSS_AMOUNT,  # पाउने रकम
    "kfl/>lds s/": EmployeeField.TAX,
    "s'n kfpg]": EmployeeField.NET_PAYABLE,  # कुल पाउने
}

EXPECTED_HEADERS: tuple[str, ...] = tuple(COLUMN_MAP)


def lookup_field(header: object) -> EmployeeField | None:
    """Map a raw header cell to its canonical field, or None when unknown."""
    return COLUMN_MAP.get(str(header).strip())
