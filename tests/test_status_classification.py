"""
Test suite for outcome classification and error normalization.

Covers the mapping of receipts and errors onto the five transaction
statuses and the structured revert detection behind it.
"""

import pytest

from txengine.core.errors import (
    ConfirmationError,
    ErrorKind,
    RevertError,
    SubmissionError,
    TransactionTimeoutError,
    UnknownError,
    is_revert_error,
    normalize_error,
)
from txengine.core.status import STATUS_MESSAGES, TransactionStatus
from txengine.engine.classifier import classify_outcome
from txengine.node.interface import LedgerConnectionError, LedgerRPCError

from tests.conftest import make_receipt


# Revert payload for Error("Insufficient balance")
ERROR_STRING_DATA = (
    "0x08c379a0"
    "0000000000000000000000000000000000000000000000000000000000000020"
    "0000000000000000000000000000000000000000000000000000000000000014"
    "496e73756666696369656e742062616c616e6365000000000000000000000000"
)


# ============================================================================
# Test Status Model
# ============================================================================

class TestTransactionStatus:
    """Tests for the TransactionStatus variant."""

    def test_only_pending_is_non_terminal(self):
        """Every status except PENDING is terminal."""
        for status in TransactionStatus:
            assert status.is_terminal == (status != TransactionStatus.PENDING)

    def test_only_confirmed_is_success(self):
        """Only CONFIRMED counts as success."""
        assert [s for s in TransactionStatus if s.is_success] == [TransactionStatus.CONFIRMED]

    def test_every_status_has_a_message(self):
        """Each status carries a default message."""
        for status in TransactionStatus:
            assert status.message
        assert set(STATUS_MESSAGES) == set(TransactionStatus)


# ============================================================================
# Test Receipt Classification
# ============================================================================

class TestReceiptClassification:
    """Tests for classification when a receipt exists."""

    def test_success_receipt_is_confirmed(self):
        """A receipt with the success flag set is CONFIRMED."""
        assert classify_outcome(make_receipt(success=True)) == TransactionStatus.CONFIRMED

    def test_failed_receipt_is_reverted(self):
        """A receipt with the success flag cleared is REVERTED."""
        assert classify_outcome(make_receipt(success=False)) == TransactionStatus.REVERTED

    def test_receipt_wins_over_error(self):
        """The receipt's success flag decides even when an error is present."""
        receipt = make_receipt(success=True)
        error = ConfirmationError("late failure")

        assert classify_outcome(receipt, error) == TransactionStatus.CONFIRMED

    def test_requires_receipt_or_error(self):
        """Classifying nothing is a programming error."""
        with pytest.raises(ValueError):
            classify_outcome(None)


# ============================================================================
# Test Error Classification
# ============================================================================

class TestErrorClassification:
    """Tests for classification when no receipt exists."""

    def test_timeout_error_is_timeout(self):
        """A timeout maps to TIMEOUT."""
        error = TransactionTimeoutError("0xabc", 1000)

        assert classify_outcome(None, error) == TransactionStatus.TIMEOUT

    def test_revert_error_is_reverted(self):
        """A RevertError maps to REVERTED."""
        assert classify_outcome(None, RevertError("0xabc")) == TransactionStatus.REVERTED

    def test_structured_revert_code_is_reverted(self):
        """A submission rejected with EXECUTION_REVERTED maps to REVERTED."""
        error = SubmissionError("Transaction rejected", code="EXECUTION_REVERTED")

        assert classify_outcome(None, error) == TransactionStatus.REVERTED

    def test_revert_text_fallback(self):
        """Plain errors mentioning a revert map to REVERTED."""
        error = RuntimeError("VM Exception while processing transaction: Revert")

        assert classify_outcome(None, error) == TransactionStatus.REVERTED

    def test_other_errors_are_failed(self):
        """Anything else maps to FAILED."""
        assert classify_outcome(None, SubmissionError("nonce too low")) == TransactionStatus.FAILED
        assert classify_outcome(None, ConfirmationError("socket closed")) == TransactionStatus.FAILED
        assert classify_outcome(None, RuntimeError("boom")) == TransactionStatus.FAILED


# ============================================================================
# Test Revert Detection
# ============================================================================

class TestRevertDetection:
    """Tests for structured revert detection on RPC errors."""

    def test_rpc_code_3_is_revert(self):
        """Geth reports reverts with code 3."""
        error = LedgerRPCError("execution reverted", rpc_code=3, data=ERROR_STRING_DATA)

        assert error.reason == "EXECUTION_REVERTED"
        assert error.revert_reason == "Insufficient balance"
        assert is_revert_error(error)

    def test_revert_payload_is_revert(self):
        """A standard revert payload marks a revert whatever the code."""
        error = LedgerRPCError("VM error", rpc_code=-32000, data=ERROR_STRING_DATA)

        assert error.reason == "EXECUTION_REVERTED"

    @pytest.mark.parametrize("message,reason", [
        ("insufficient funds for gas * price + value", "INSUFFICIENT_FUNDS"),
        ("nonce too low", "NONCE_EXPIRED"),
        ("replacement transaction underpriced", "REPLACEMENT_UNDERPRICED"),
        ("something else", "RPC_-32000"),
    ])
    def test_rpc_message_reasons(self, message, reason):
        """Well-known node messages get a structured reason."""
        assert LedgerRPCError(message, rpc_code=-32000).reason == reason

    def test_non_revert_rpc_error(self):
        """Other RPC errors are not reverts."""
        assert not is_revert_error(LedgerRPCError("insufficient funds", rpc_code=-32000))


# ============================================================================
# Test Error Normalization
# ============================================================================

class TestNormalizeError:
    """Tests for converting exceptions into ErrorInfo values."""

    def test_timeout_references_configured_value(self):
        """Timeout errors reference the configured bound."""
        info = normalize_error(TransactionTimeoutError("0xabc", 1000))

        assert info.kind == ErrorKind.TIMEOUT
        assert info.code == "CONFIRMATION_TIMEOUT"
        assert info.details["timeout_ms"] == 1000
        assert "1000ms" in info.message

    def test_friendly_message_with_reason(self):
        """Well-known codes get an operator-readable message."""
        error = SubmissionError(
            "Transaction rejected: execution reverted",
            code="EXECUTION_REVERTED",
            details={"reason": "Insufficient balance"},
        )

        info = normalize_error(error, {"method": "transfer"})

        assert info.kind == ErrorKind.REVERT
        assert info.message == "Contract execution reverted: Insufficient balance"
        assert info.details["method"] == "transfer"
        assert info.original == "Transaction rejected: execution reverted"

    def test_connection_error(self):
        """Transport failures normalize to NETWORK_ERROR."""
        info = normalize_error(LedgerConnectionError("connection refused"))

        assert info.code == "NETWORK_ERROR"
        assert "network" in info.message.lower()

    def test_unknown_error(self):
        """Unexpected exceptions keep their type name."""
        info = normalize_error(KeyError("missing"))

        assert info.kind == ErrorKind.UNKNOWN
        assert info.code == "UNKNOWN_ERROR"
        assert info.details["error_type"] == "KeyError"

    def test_engine_error_defaults(self):
        """Engine errors without a code use their default."""
        assert normalize_error(UnknownError("odd")).code == "UNKNOWN_ERROR"
        assert normalize_error(RevertError("0xabc")).kind == ErrorKind.REVERT

    def test_revert_text_sets_revert_kind(self):
        """Errors classified as reverts carry the revert kind."""
        rejected = normalize_error(LedgerRPCError("execution reverted", rpc_code=-32000))
        plain = normalize_error(RuntimeError("call reverted by contract"))

        assert rejected.kind == ErrorKind.REVERT
        assert rejected.code == "EXECUTION_REVERTED"
        assert plain.kind == ErrorKind.REVERT
        assert plain.code == "UNKNOWN_ERROR"

    def test_non_revert_keeps_kind(self):
        """Other failures keep the kind of their error type."""
        assert normalize_error(SubmissionError("nonce too low")).kind == ErrorKind.SUBMISSION
        assert normalize_error(ConfirmationError("lost")).kind == ErrorKind.CONFIRMATION

    def test_to_dict(self):
        """ErrorInfo serializes its fields."""
        data = normalize_error(ConfirmationError("lost", code="NETWORK_ERROR")).to_dict()

        assert data["kind"] == "confirmation"
        assert data["code"] == "NETWORK_ERROR"
