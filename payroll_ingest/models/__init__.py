"""Domain models for the payroll spreadsheet ingestion tool."""

from .config_models import IngestConfig
from .employee import EmployeeField, EmployeeRecord
from .error_record import ErrorRecord
from .processing_result import BatchResult, FileStat
from .upload_result import MultiSheetUploadResult, SheetResult, StructureCheck, UploadResult
from .validation_error import ValidationError

__all__ = [
    # Configuration models
    "IngestConfig",
    # Record models
    "EmployeeField",
    "EmployeeRecord",
    "ValidationError",
    # Result models
    "StructureCheck",
    "UploadResult",
    "SheetResult",
    "MultiSheetUploadResult",
    "FileStat",
    "BatchResult",
    "ErrorRecord",
]
