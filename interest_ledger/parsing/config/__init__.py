# Configuration submodule
from .layout import ColumnDef, ColumnLayout

__all__ = ['ColumnDef', 'ColumnLayout']
