"""Legacy font encoding converters."""

from .preeti import convert_record_fields, is_preeti_encoded, preeti_to_unicode

__all__ = [
    "convert_record_fields",
    "is_preeti_encoded",
    "preeti_to_unicode",
]
