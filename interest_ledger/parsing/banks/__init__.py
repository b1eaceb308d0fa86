from .pnb import PNBExtractor, format_pnb_description
from .kotak import KotakExtractor
from .sbi import SBIExtractor
from .idfc import IDFCExtractor

# Detection priority; the first extractor that claims an artifact wins
EXTRACTORS = (
    PNBExtractor,
    KotakExtractor,
    SBIExtractor,
    IDFCExtractor,
)

__all__ = [
    'EXTRACTORS',
    'PNBExtractor',
    'KotakExtractor',
    'SBIExtractor',
    'IDFCExtractor',
    'format_pnb_description',
]
