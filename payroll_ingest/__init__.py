"""Payroll salary sheet ingestion and Preeti to Unicode conversion."""

__version__ = "0.1.0"
