"""Spreadsheet decoding and the salary upload validation pipeline."""
