"""
Statement Parsing Module

- Statement artifacts and their derived text/row views
- Bank extractors (PNB, Kotak, SBI, IDFC)
- Format detection through the extractor registry
- Pipeline orchestration for multi-file uploads
"""

# Base classes
from .artifact import StatementArtifact
from .base import BaseExtractor, StatementRow

# Configuration
from .config.layout import ColumnDef, ColumnLayout

# Banks
from .banks import EXTRACTORS, PNBExtractor, KotakExtractor, SBIExtractor, IDFCExtractor

# Errors
from .exceptions import StatementFormatError, UnsupportedFormatError, HeaderNotFoundError

# Registry & Pipeline
from .registry import ExtractorRegistry, get_registry
from .pipeline import ExtractorPipeline, BatchResult, FileReport

__all__ = [
    # Base
    'StatementArtifact',
    'BaseExtractor',
    'StatementRow',
    # Config
    'ColumnDef',
    'ColumnLayout',
    # Banks
    'EXTRACTORS',
    'PNBExtractor',
    'KotakExtractor',
    'SBIExtractor',
    'IDFCExtractor',
    # Errors
    'StatementFormatError',
    'UnsupportedFormatError',
    'HeaderNotFoundError',
    # Registry & Pipeline
    'ExtractorRegistry',
    'get_registry',
    'ExtractorPipeline',
    'BatchResult',
    'FileReport',
]
