"""
Utilities Module

This module provides shared utility functions for:
- Reading and writing city model documents as JSON
- Expanding input paths into document files
"""

from .document import (
    DocumentError,
    document_from_dict,
    document_to_dict,
    read_document,
    write_document,
)
from .files import find_input_files

__all__ = [
    'DocumentError',
    'document_from_dict',
    'document_to_dict',
    'read_document',
    'write_document',
    'find_input_files',
]
