"""
Unit Tests for ExtractorPipeline

Tests the batch extraction pipeline including:
- Format detection and dispatch
- Batch failure policies (abort / skip)
- Cross-file deduplication
"""
import pytest
from unittest.mock import Mock, patch

from interest_ledger.parsing.artifact import StatementArtifact
from interest_ledger.parsing.exceptions import HeaderNotFoundError, UnsupportedFormatError
from interest_ledger.parsing.pipeline import ExtractorPipeline
from interest_ledger.parsing.registry import ExtractorRegistry
from tests.conftest import PNB_CSV, USER, pnb_artifact


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def pipeline(registry):
    return ExtractorPipeline(registry, max_workers=2)


@pytest.fixture
def unknown_artifact():
    return StatementArtifact("mystery.csv", "Date,Narration,Amount\n01-01-2024,Interest,1.00\n")


SECOND_PNB_CSV = """Txn No.,Txn Date,Description,Dr Amount,Cr Amount,Balance
S2001,15-04-2024,Int.Pd:01-04-2024 to 30-06-2024,,510.00,11010.00
"""


# ============================================================================
# TEST: INITIALIZATION
# ============================================================================

class TestPipelineInit:
    def test_init_with_registry(self, registry):
        pipeline = ExtractorPipeline(registry)
        assert pipeline.registry == registry
        assert pipeline.failure_policy == "abort"

    def test_rejects_unknown_policy(self, registry):
        with pytest.raises(ValueError):
            ExtractorPipeline(registry, failure_policy="retry")


# ============================================================================
# TEST: SINGLE FILE
# ============================================================================

class TestProcessFile:
    def test_detected_file(self, pipeline):
        transactions = pipeline.process_file(pnb_artifact(), USER)
        assert len(transactions) == 1
        assert transactions[0].bank_id == "in-pnb"

    def test_csv_labelled_as_excel(self, pipeline):
        artifact = StatementArtifact("pnb.csv", PNB_CSV, "application/vnd.ms-excel")
        transactions = pipeline.process_file(artifact, USER)
        assert len(transactions) == 1
        assert transactions[0].bank_id == "in-pnb"

    def test_unsupported_format(self, pipeline, unknown_artifact):
        with pytest.raises(UnsupportedFormatError) as exc:
            pipeline.process_file(unknown_artifact, USER)
        assert exc.value.filename == "mystery.csv"
        assert "mystery.csv" in str(exc.value)

    def test_uses_registry_detection(self):
        extractor = Mock(bank_id="x", bank_name="X")
        extractor.extract.return_value = []
        registry = Mock(spec=ExtractorRegistry)
        registry.detect.return_value = extractor

        ExtractorPipeline(registry).process_file(pnb_artifact(), USER)

        registry.detect.assert_called_once()
        extractor.extract.assert_called_once()


# ============================================================================
# TEST: BATCH
# ============================================================================

class TestProcessBatch:
    def test_merges_and_orders_newest_first(self, pipeline):
        result = pipeline.process_batch(
            [pnb_artifact(), pnb_artifact(SECOND_PNB_CSV, "pnb-q2.csv")], USER
        )

        assert [t.transaction_id for t in result.transactions] == ["S2001", "S1001"]
        assert [f.status for f in result.files] == ["success", "success"]
        assert result.files[0].bank_id == "in-pnb"
        assert result.files[0].tx_count == 1

    def test_same_file_twice_is_deduplicated(self, pipeline):
        result = pipeline.process_batch([pnb_artifact(), pnb_artifact(filename="again.csv")], USER)
        assert len(result.transactions) == 1

    def test_abort_raises_first_failure(self, pipeline, unknown_artifact):
        with pytest.raises(UnsupportedFormatError):
            pipeline.process_batch([pnb_artifact(), unknown_artifact], USER)

    def test_skip_reports_failures(self, pipeline, unknown_artifact):
        result = pipeline.process_batch([unknown_artifact, pnb_artifact()], USER, failure_policy="skip")

        assert len(result.transactions) == 1
        assert len(result.errors) == 1
        assert result.errors[0].filename == "mystery.csv"
        assert "Could not detect" in result.errors[0].message

    def test_header_failure_under_skip(self, pipeline):
        broken = pnb_artifact("Txn No.,Txn Date,Description,Balance\n", "broken.csv")
        result = pipeline.process_batch([broken], USER, failure_policy="skip")

        assert result.transactions == []
        assert result.errors[0].filename == "broken.csv"

    def test_header_failure_under_abort(self, pipeline):
        broken = pnb_artifact("Txn No.,Txn Date,Description,Balance\n", "broken.csv")
        with pytest.raises(HeaderNotFoundError):
            pipeline.process_batch([broken, pnb_artifact()], USER)

    def test_empty_batch(self, pipeline):
        result = pipeline.process_batch([], USER)
        assert result.transactions == []
        assert result.files == []

    def test_corrupted_pdf(self, pipeline):
        artifact = StatementArtifact("scan.pdf", b"%PDF-1.4 broken", "application/pdf")
        with patch('pdfplumber.open', side_effect=Exception("Corrupted PDF")):
            result = pipeline.process_batch([artifact, pnb_artifact(PNB_CSV)], USER, failure_policy="skip")

        assert result.errors[0].filename == "scan.pdf"
        assert len(result.transactions) == 1
