"""Unit tests for toolchain version checks (create_shuttle_app.toolchain.checker).

Tests cover:
- normalize_version for rustc / cargo-shuttle / protoc output
- satisfies with single and combined constraints
- is_installed (missing tool, matching, outdated, unreadable version)
"""

from __future__ import annotations

from unittest.mock import patch

import pytest

from create_shuttle_app.toolchain.checker import is_installed, normalize_version, satisfies


# ---------------------------------------------------------------------------
# normalize_version
# ---------------------------------------------------------------------------


class TestNormalizeVersion:
    @pytest.mark.unit
    def test_rustc(self):
        output = "rustc 1.75.0 (82e1608df 2023-12-21)\n"
        assert normalize_version("rustc", output) == "1.75.0"

    @pytest.mark.unit
    def test_cargo_shuttle(self):
        assert normalize_version("cargo-shuttle", "cargo-shuttle 0.12.0\n") == "0.12.0"

    @pytest.mark.unit
    def test_leading_v_is_dropped(self):
        assert normalize_version("node", "v18.12.1") == "18.12.1"

    @pytest.mark.unit
    def test_protoc_three_part_version_untouched(self):
        assert normalize_version("protoc", "libprotoc 3.21.9") == "3.21.9"

    @pytest.mark.unit
    def test_protoc_two_part_version_gets_major(self):
        assert normalize_version("protoc", "libprotoc 22.2") == "3.22.2"

    @pytest.mark.unit
    def test_two_part_version_only_prefixed_for_protoc(self):
        assert normalize_version("rustc", "rustc 1.75") == "1.75"

    @pytest.mark.unit
    def test_no_version_token(self):
        assert normalize_version("rustc", "error: unknown toolchain") is None


# ---------------------------------------------------------------------------
# satisfies
# ---------------------------------------------------------------------------


class TestSatisfies:
    @pytest.mark.unit
    @pytest.mark.parametrize(
        ("version", "constraint", "expected"),
        [
            ("1.75.0", ">=1.65.0", True),
            ("1.65.0", ">=1.65.0", True),
            ("1.64.1", ">=1.65.0", False),
            ("0.12.0", "0.12.0", True),
            ("0.13.0", "0.12.0", False),
            ("3.22.2", ">=3.21.9,<4.0.0", True),
            ("4.0.0", ">=3.21.9,<4.0.0", False),
            ("1.75", ">=1.65.0", True),
        ],
    )
    def test_constraints(self, version, constraint, expected):
        assert satisfies(version, constraint) is expected

    @pytest.mark.unit
    def test_invalid_version_raises(self):
        with pytest.raises(ValueError):
            satisfies("not-a-version", ">=1.0.0")


# ---------------------------------------------------------------------------
# is_installed
# ---------------------------------------------------------------------------


class TestIsInstalled:
    @pytest.mark.unit
    def test_missing_tool(self):
        with patch("create_shuttle_app.toolchain.checker.command_exists", return_value=False), \
             patch("create_shuttle_app.toolchain.checker.run_command") as mock_run:
            assert is_installed("rustc", ">=1.65.0") is False
        mock_run.assert_not_called()

    @pytest.mark.unit
    def test_matching_version(self):
        with patch("create_shuttle_app.toolchain.checker.command_exists", return_value=True), \
             patch(
                 "create_shuttle_app.toolchain.checker.run_command",
                 return_value=b"rustc 1.75.0 (82e1608df 2023-12-21)\n",
             ) as mock_run:
            assert is_installed("rustc", ">=1.65.0") is True
        mock_run.assert_called_once_with("rustc --version")

    @pytest.mark.unit
    def test_outdated_version(self):
        with patch("create_shuttle_app.toolchain.checker.command_exists", return_value=True), \
             patch("create_shuttle_app.toolchain.checker.run_command", return_value=b"cargo-shuttle 0.8.0\n"):
            assert is_installed("cargo-shuttle", ">=0.12.0") is False

    @pytest.mark.unit
    def test_protoc_short_version_accepted(self):
        with patch("create_shuttle_app.toolchain.checker.command_exists", return_value=True), \
             patch("create_shuttle_app.toolchain.checker.run_command", return_value=b"libprotoc 22.2\n"):
            assert is_installed("protoc", ">=3.21.9") is True

    @pytest.mark.unit
    def test_unreadable_version(self):
        with patch("create_shuttle_app.toolchain.checker.command_exists", return_value=True), \
             patch("create_shuttle_app.toolchain.checker.run_command", return_value=b"garbage output\n"):
            assert is_installed("rustc", ">=1.65.0") is False
