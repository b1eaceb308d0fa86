"""
Statement Artifact

One uploaded statement file plus the derived views extractors need:
decoded text, PDF text and spreadsheet rows. Each view is computed once.
"""
import io
import os
from functools import cached_property
from typing import List, Optional

import pandas as pd
import pdfplumber

from interest_ledger.common.logging_config import get_logger
from .exceptions import StatementFormatError

logger = get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"
SPREADSHEET_MEDIA_TYPES = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-excel",
)
SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")
TEXT_EXTENSIONS = (".csv", ".txt")
ZIP_MAGIC = b"PK\x03\x04"
OLE_MAGIC = b"\xD0\xCF\x11\xE0"


class StatementArtifact:
    """
    Args:
        filename: Original file name (used for media sniffing and error messages)
        content: Raw bytes, or already-decoded text
        media_type: Optional MIME type hint from the upload
    """

    def __init__(self, filename: str, content, media_type: Optional[str] = None):
        self.filename = filename or ""
        self.content = content.encode('utf-8') if isinstance(content, str) else bytes(content)
        self.media_type = (media_type or "").split(";")[0].strip().lower()

    @classmethod
    def from_path(cls, path: str, media_type: Optional[str] = None) -> "StatementArtifact":
        with open(path, 'rb') as f:
            return cls(os.path.basename(path), f.read(), media_type)

    def __repr__(self):
        return f"StatementArtifact({self.filename!r}, {len(self.content)} bytes, {self.media_type or 'unknown'})"

    @property
    def extension(self) -> str:
        return os.path.splitext(self.filename)[1].lower()

    @property
    def is_pdf(self) -> bool:
        return (
            self.media_type == PDF_MEDIA_TYPE
            or self.extension == ".pdf"
            or self.content.startswith(b"%PDF")
        )

    @property
    def is_spreadsheet(self) -> bool:
        if self.is_pdf:
            return False
        if self.content.startswith((ZIP_MAGIC, OLE_MAGIC)):
            return True
        # browsers often label .csv uploads with an Excel media type
        if self.extension in TEXT_EXTENSIONS:
            return False
        return self.media_type in SPREADSHEET_MEDIA_TYPES or self.extension in SPREADSHEET_EXTENSIONS

    @property
    def is_text(self) -> bool:
        return not self.is_pdf and not self.is_spreadsheet

    @cached_property
    def decoded_text(self) -> str:
        """Raw bytes decoded as text (CSV exports)."""
        try:
            return self.content.decode('utf-8-sig')
        except UnicodeDecodeError:
            return self.content.decode('latin1', errors='ignore')

    @cached_property
    def pdf_text(self) -> str:
        """Text of every PDF page, one physical line per line."""
        pages = []
        try:
            with pdfplumber.open(io.BytesIO(self.content)) as pdf:
                for page in pdf.pages:
                    pages.append(page.extract_text() or "")
        except Exception as e:
            logger.error(f"PDF Read Error: {e}", filename=self.filename, error_type=type(e).__name__)
            raise StatementFormatError(f"PDF Read Error: {e}", filename=self.filename) from e

        logger.debug("PDF text extracted.", filename=self.filename, pages=len(pages))
        return "\n".join(pages)

    @cached_property
    def rows(self) -> List[list]:
        """First worksheet as a list of rows; empty cells are None."""
        try:
            df = pd.read_excel(io.BytesIO(self.content), header=None, dtype=object, sheet_name=0)
        except Exception as e:
            logger.error(f"Spreadsheet Read Error: {e}", filename=self.filename, error_type=type(e).__name__)
            raise StatementFormatError(f"Spreadsheet Read Error: {e}", filename=self.filename) from e

        df = df.astype(object).where(pd.notna(df), None)
        return df.values.tolist()

    @property
    def text(self) -> str:
        """Best text view for content sniffing, whatever the media type."""
        if self.is_pdf:
            return self.pdf_text
        if self.is_spreadsheet:
            return "\n".join(
                " ".join(str(cell) for cell in row if cell is not None) for row in self.rows
            )
        return self.decoded_text

    def sample(self, length: int = 200) -> str:
        try:
            return self.text[:length]
        except StatementFormatError:
            return ""
