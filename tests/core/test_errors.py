"""Tests for the typed error hierarchy."""

from tilehub.core.errors import (
    CircuitOpenError,
    ErrorCategory,
    ErrorContext,
    InvalidRequestError,
    SourceUnavailableError,
    TileHubError,
    categorize_error,
    describe_error,
)


class TestTileHubError:
    def test_default_category(self):
        assert TileHubError("x").category is ErrorCategory.INTERNAL
        assert InvalidRequestError("x").category is ErrorCategory.VALIDATION
        assert CircuitOpenError("x").category is ErrorCategory.CIRCUIT

    def test_to_dict_includes_context(self):
        err = SourceUnavailableError("down", context=ErrorContext(source="serper", tile="sentiment"))
        data = err.to_dict()
        assert data["error_type"] == "SourceUnavailableError"
        assert data["category"] == "SOURCE"
        assert data["context"]["source"] == "serper"

    def test_source_unavailable_carries_response(self):
        sentinel = object()
        assert SourceUnavailableError("down", response=sentinel).response is sentinel

    def test_cause_is_chained(self):
        cause = ValueError("bad")
        err = TileHubError("wrapped", cause=cause)
        assert err.__cause__ is cause
        assert err.to_dict()["cause"] == "bad"


class TestHelpers:
    def test_categorize_plain_exception(self):
        assert categorize_error(RuntimeError("x")) is ErrorCategory.UNKNOWN
        assert categorize_error(ValueError("x")) is ErrorCategory.VALIDATION

    def test_categorize_typed(self):
        assert categorize_error(InvalidRequestError("x")) is ErrorCategory.VALIDATION

    def test_describe(self):
        assert describe_error(InvalidRequestError("too short")) == "too short"
        assert describe_error(KeyError("k")) == "KeyError: 'k'"
