"""
Extractor Registry

Fixed, ordered set of bank extractors and the format detector built on it.
"""
from typing import Dict, Iterable, List, Optional

from interest_ledger.common.logging_config import get_logger
from .artifact import StatementArtifact
from .base import BaseExtractor
from .banks import EXTRACTORS
from .exceptions import StatementFormatError

logger = get_logger(__name__)


class ExtractorRegistry:
    """
    Registry of bank extractors.

    Detection walks the extractors in registry order and returns the first
    one whose ``detect`` accepts the artifact. Two extractors claiming the
    same artifact is not an error: order is the tie-break.
    """

    def __init__(self, extractors: Optional[Iterable[BaseExtractor]] = None):
        if extractors is None:
            extractors = [cls() for cls in EXTRACTORS]
        self.extractors: List[BaseExtractor] = list(extractors)
        self._by_id: Dict[str, BaseExtractor] = {e.bank_id: e for e in self.extractors}

    def detect(self, artifact: StatementArtifact) -> Optional[BaseExtractor]:
        """
        Args:
            artifact: The uploaded statement

        Returns:
            First matching extractor, or None if no extractor claims it
        """
        for extractor in self.extractors:
            try:
                claimed = extractor.detect(artifact)
            except StatementFormatError as e:
                # Unreadable as this extractor's media type
                logger.debug(
                    "Detector could not read artifact.",
                    bank_id=extractor.bank_id,
                    filename=artifact.filename,
                    error=str(e),
                )
                continue
            if claimed:
                logger.debug(f"Detected format: {extractor.bank_name}", bank_id=extractor.bank_id, filename=artifact.filename)
                return extractor
        return None

    def get(self, bank_id: str) -> Optional[BaseExtractor]:
        """Get extractor by bank id."""
        return self._by_id.get(bank_id)

    def list_banks(self) -> List[str]:
        """List all supported bank names, in detection order."""
        return [e.bank_name for e in self.extractors]

    def format_description(self, bank_id: Optional[str], description: Optional[str]) -> Optional[str]:
        """Presentation-time description for a stored transaction."""
        extractor = self.get(bank_id) if bank_id else None
        if extractor is None:
            return description
        return extractor.format_description(description)


_default_registry: Optional[ExtractorRegistry] = None


def get_registry() -> ExtractorRegistry:
    """Get the shared default registry."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ExtractorRegistry()
    return _default_registry
