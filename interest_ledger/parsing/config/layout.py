"""
Column Layout Configuration

Declares how a bank's tabular export (CSV or spreadsheet) maps onto the
fields an extractor needs.
"""
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence


@dataclass
class ColumnDef:
    """
    Defines how to read one field from a header-mapped row.

    Attributes:
        name: Field name on the record ('date', 'description', 'debit', ...)
        header: Header text to look for (case-insensitive, whitespace-collapsed)
        converter: Turns the raw cell into a value; None means "invalid row"
        exact: Match the whole header cell instead of a substring
        required: Missing header -> HeaderNotFoundError
    """
    name: str
    header: str
    converter: Callable = str
    exact: bool = False
    required: bool = True


def _clean(cell) -> str:
    if cell is None:
        return ""
    return " ".join(str(cell).split()).lower()


@dataclass
class ColumnLayout:
    """
    Header-driven column mapping for one bank export.

    Attributes:
        columns: Field definitions
        header_markers: Substrings that must all appear in some cell of the
            header row for it to be recognised
    """
    columns: List[ColumnDef]
    header_markers: List[str] = field(default_factory=list)

    def find_header(self, rows: Sequence[Sequence]) -> Optional[int]:
        """Index of the first row whose cells contain every header marker."""
        markers = [m.lower() for m in self.header_markers]
        for idx, row in enumerate(rows):
            cells = [_clean(c) for c in row]
            if all(any(m in c for c in cells) for m in markers):
                return idx
        return None

    def map_columns(self, header_row: Sequence) -> tuple[Dict[str, int], List[str]]:
        """
        Returns (field -> column index, missing required headers).
        """
        cells = [_clean(c) for c in header_row]
        mapping = {}
        missing = []
        for col in self.columns:
            target = _clean(col.header)
            idx = None
            for i, cell in enumerate(cells):
                if (cell == target) if col.exact else (target in cell):
                    idx = i
                    break
            if idx is None:
                if col.required:
                    missing.append(col.header)
            else:
                mapping[col.name] = idx
        return mapping, missing

    def read_row(self, row: Sequence, mapping: Dict[str, int]) -> Dict[str, object]:
        """Applies each column's converter. Absent optional columns read as None."""
        record = {}
        for col in self.columns:
            idx = mapping.get(col.name)
            raw = row[idx] if idx is not None and idx < len(row) else None
            record[col.name] = col.converter(raw)
        return record
