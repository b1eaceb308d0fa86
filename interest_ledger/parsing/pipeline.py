"""
Extractor Pipeline

Runs format detection and extraction over a batch of uploaded statements.
Each artifact is parsed on its own worker thread; results are merged by
the consolidator once every worker has finished.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from interest_ledger.common.logging_config import get_logger
from interest_ledger.common.models import Transaction
from interest_ledger.core.consolidator import TransactionConsolidator
from .artifact import StatementArtifact
from .exceptions import UnsupportedFormatError
from .registry import ExtractorRegistry

logger = get_logger(__name__)

ABORT = 'abort'
SKIP = 'skip'


@dataclass
class FileReport:
    filename: str
    status: str  # 'success' | 'error'
    bank_id: Optional[str] = None
    bank_name: Optional[str] = None
    tx_count: int = 0
    message: Optional[str] = None


@dataclass
class BatchResult:
    transactions: List[Transaction] = field(default_factory=list)
    files: List[FileReport] = field(default_factory=list)

    @property
    def errors(self) -> List[FileReport]:
        return [f for f in self.files if f.status == 'error']


@dataclass
class _Outcome:
    artifact: StatementArtifact
    transactions: List[Transaction] = field(default_factory=list)
    bank_id: Optional[str] = None
    bank_name: Optional[str] = None
    error: Optional[Exception] = None


class ExtractorPipeline:
    """
    Main orchestrator for statement extraction.

    Handles:
    - Format detection through the registry
    - Bank-specific extraction
    - Parallel processing of multi-file uploads
    - The batch failure policy ('abort' or 'skip')
    """

    def __init__(self, registry: ExtractorRegistry, max_workers: int = 4, failure_policy: str = ABORT):
        """
        Args:
            registry: ExtractorRegistry with the supported banks
            max_workers: Upper bound on concurrently parsed files
            failure_policy: 'abort' fails the whole batch on the first bad
                file; 'skip' reports bad files and keeps the rest
        """
        if failure_policy not in (ABORT, SKIP):
            raise ValueError(f"Unknown failure policy: {failure_policy}")
        self.registry = registry
        self.max_workers = max(1, max_workers)
        self.failure_policy = failure_policy

    def process_file(self, artifact: StatementArtifact, identity: str) -> List[Transaction]:
        """
        Detect the bank and extract the interest transactions of one file.

        Raises:
            UnsupportedFormatError: no extractor claims the artifact
            HeaderNotFoundError: the claimed format lacks its header row
        """
        return self._run(artifact, identity).transactions

    def _run(self, artifact: StatementArtifact, identity: str) -> _Outcome:
        extractor = self.registry.detect(artifact)
        if extractor is None:
            logger.warning("Format not detected.", filename=artifact.filename)
            raise UnsupportedFormatError(filename=artifact.filename, sample_text=artifact.sample())

        logger.info(f"Using extractor: {extractor.__class__.__name__}", bank_id=extractor.bank_id, filename=artifact.filename)
        transactions = extractor.extract(artifact, identity)
        return _Outcome(artifact, transactions, extractor.bank_id, extractor.bank_name)

    def _safe_run(self, artifact: StatementArtifact, identity: str) -> _Outcome:
        try:
            return self._run(artifact, identity)
        except Exception as e:
            logger.error(f"Extraction failed for {artifact.filename}: {e}", exc_info=True, filename=artifact.filename)
            return _Outcome(artifact, error=e)

    def process_batch(
        self,
        artifacts: Sequence[StatementArtifact],
        identity: str,
        failure_policy: Optional[str] = None,
    ) -> BatchResult:
        """
        Process several files and return the deduplicated transaction set.

        Under 'abort' the first failing file (in upload order) is re-raised
        and nothing is returned.
        """
        policy = failure_policy or self.failure_policy
        if policy not in (ABORT, SKIP):
            raise ValueError(f"Unknown failure policy: {policy}")

        if not artifacts:
            return BatchResult()

        workers = min(self.max_workers, len(artifacts))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            outcomes = list(pool.map(lambda a: self._safe_run(a, identity), artifacts))

        if policy == ABORT:
            for outcome in outcomes:
                if outcome.error is not None:
                    logger.warning(
                        "Batch aborted by failing file.",
                        filename=outcome.artifact.filename,
                        files_count=len(artifacts),
                    )
                    raise outcome.error

        result = BatchResult()
        batches = []
        for outcome in outcomes:
            if outcome.error is not None:
                result.files.append(FileReport(
                    filename=outcome.artifact.filename,
                    status='error',
                    message=str(outcome.error),
                ))
                continue
            batches.append(outcome.transactions)
            result.files.append(FileReport(
                filename=outcome.artifact.filename,
                status='success',
                bank_id=outcome.bank_id,
                bank_name=outcome.bank_name,
                tx_count=len(outcome.transactions),
            ))

        result.transactions = TransactionConsolidator.consolidate(batches)
        logger.info(
            "Batch extraction finished.",
            files_count=len(artifacts),
            failed=len(result.errors),
            tx_count=len(result.transactions),
        )
        return result
