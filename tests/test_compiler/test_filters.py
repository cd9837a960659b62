"""Tests for specmodel.compiler.filters."""

from __future__ import annotations

import pytest

from specmodel.compiler.filters import (
    is_ignored_operation,
    is_ignored_request_header,
    is_ignored_response_header,
    matches_ignore_pattern,
)


class TestMatchesIgnorePattern:
    def test_empty_patterns(self) -> None:
        assert not matches_ignore_pattern(set(), "getWidget", "ETag")

    def test_exact(self) -> None:
        assert matches_ignore_pattern({"getWidget.ETag"}, "getWidget", "ETag")

    def test_star_is_whole_segment_only(self) -> None:
        assert not matches_ignore_pattern({"get*.ETag"}, "getWidget", "ETag")

    def test_header_containing_dot(self) -> None:
        assert matches_ignore_pattern({"*.x.trace"}, "getWidget", "x.trace")


class TestRequestHeaders:
    @pytest.mark.parametrize(
        "pattern",
        ["*.*", "*.X-Trace-Id", "getWidget.X-Trace-Id", "getWidget.*"],
    )
    def test_every_wildcard_axis(self, pattern: str) -> None:
        assert is_ignored_request_header({pattern}, "getWidget", "X-Trace-Id")

    def test_other_operation(self) -> None:
        assert not is_ignored_request_header(
            {"createWidget.X-Trace-Id"}, "getWidget", "X-Trace-Id"
        )


class TestResponseHeaders:
    @pytest.mark.parametrize(
        "pattern",
        [
            "*.*.*",
            "*.*.ETag",
            "*.200.*",
            "*.200.ETag",
            "getWidget.*.*",
            "getWidget.*.ETag",
            "getWidget.200.*",
            "getWidget.200.ETag",
        ],
    )
    def test_every_wildcard_axis(self, pattern: str) -> None:
        assert is_ignored_response_header({pattern}, "getWidget", 200, "ETag")

    def test_other_code(self) -> None:
        assert not is_ignored_response_header({"getWidget.404.ETag"}, "getWidget", 200, "ETag")


class TestOperations:
    def test_method_is_lowercased(self) -> None:
        assert is_ignored_operation({"deleteWidget.delete"}, "deleteWidget", "DELETE")

    def test_any_method(self) -> None:
        assert is_ignored_operation({"deleteWidget.*"}, "deleteWidget", "delete")

    def test_not_ignored(self) -> None:
        assert not is_ignored_operation({"getWidget.get"}, "deleteWidget", "delete")
