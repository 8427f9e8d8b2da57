"""Unit tests for name and path validation (create_shuttle_app.scaffolder.names).

Tests cover:
- validate_project_name (charset, profanity, reserved names, hyphens)
- append_unique_suffix format and uniqueness
- is_path_safe (missing path, empty dir, safe entries, conflicts, files)
"""

from __future__ import annotations

import re
from pathlib import Path

import pytest

from create_shuttle_app.scaffolder.names import (
    append_unique_suffix,
    contains_profanity,
    is_path_safe,
    validate_project_name,
)


# ---------------------------------------------------------------------------
# validate_project_name
# ---------------------------------------------------------------------------


class TestValidateProjectName:
    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["my-app", "App2", "a", "next-shuttle-demo", "42"])
    def test_valid_names(self, name):
        result = validate_project_name(name)
        assert result.valid is True
        assert result.problems == []

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["my_app", "my app", "my.app", "", "café"])
    def test_invalid_characters(self, name):
        result = validate_project_name(name)
        assert result.valid is False
        assert "must contain only alphanumeric characters or hyphens" in result.problems

    @pytest.mark.unit
    def test_profanity(self):
        result = validate_project_name("my-SHIT-app")
        assert result.problems == ["must not contain profanity"]

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["shuttle", "Shuttle", "shuttleapp"])
    def test_reserved_names(self, name):
        assert validate_project_name(name).problems == ["must not be a reserved name"]

    @pytest.mark.unit
    def test_reserved_name_as_part_is_fine(self):
        assert validate_project_name("my-shuttle-app").valid is True

    @pytest.mark.unit
    @pytest.mark.parametrize("name", ["-app", "app-", "-"])
    def test_leading_or_trailing_hyphen(self, name):
        assert validate_project_name(name).problems == ["must not start or end with a hyphen"]

    @pytest.mark.unit
    def test_collects_every_problem(self):
        result = validate_project_name("-shit_")
        assert result.problems == [
            "must contain only alphanumeric characters or hyphens",
            "must not contain profanity",
            "must not start or end with a hyphen",
        ]


class TestContainsProfanity:
    @pytest.mark.unit
    def test_clean_words(self):
        assert contains_profanity("hello-class-assessment") is False

    @pytest.mark.unit
    def test_case_insensitive(self):
        assert contains_profanity("BullShit") is True


# ---------------------------------------------------------------------------
# append_unique_suffix
# ---------------------------------------------------------------------------


class TestAppendUniqueSuffix:
    @pytest.mark.unit
    def test_format(self):
        assert re.fullmatch(r"my-app-[0-9a-f]{6}", append_unique_suffix("my-app"))

    @pytest.mark.unit
    def test_result_is_a_valid_name(self):
        assert validate_project_name(append_unique_suffix("my-app")).valid is True

    @pytest.mark.unit
    def test_suffixes_differ(self):
        names = {append_unique_suffix("my-app") for _ in range(20)}
        assert len(names) > 1


# ---------------------------------------------------------------------------
# is_path_safe
# ---------------------------------------------------------------------------


class TestIsPathSafe:
    @pytest.mark.unit
    def test_missing_path(self, tmp_project_dir: Path):
        result = is_path_safe(tmp_project_dir)
        assert result.safe is True
        assert result.problems == []

    @pytest.mark.unit
    def test_empty_directory(self, tmp_project_dir: Path):
        tmp_project_dir.mkdir()
        assert is_path_safe(tmp_project_dir).safe is True

    @pytest.mark.unit
    def test_safe_entries_only(self, tmp_project_dir: Path):
        tmp_project_dir.mkdir()
        (tmp_project_dir / ".git").mkdir()
        (tmp_project_dir / "README.md").write_text("# hi\n")
        (tmp_project_dir / "LICENSE").write_text("MIT\n")
        assert is_path_safe(tmp_project_dir).safe is True

    @pytest.mark.unit
    def test_conflicting_entries(self, tmp_project_dir: Path):
        tmp_project_dir.mkdir()
        (tmp_project_dir / "package.json").write_text("{}")
        (tmp_project_dir / "backend").mkdir()
        (tmp_project_dir / "README.md").write_text("# hi\n")

        result = is_path_safe(tmp_project_dir)

        assert result.safe is False
        assert result.problems == [
            "backend already exists in the target directory",
            "package.json already exists in the target directory",
        ]

    @pytest.mark.unit
    def test_existing_file(self, tmp_project_dir: Path):
        tmp_project_dir.write_text("")
        result = is_path_safe(tmp_project_dir)
        assert result.safe is False
        assert "is not a directory" in result.problems[0]
