"""
Unit tests for tablesync.config
"""

import argparse

import pytest

from tablesync.config import DatabaseConfig, RunOptions


class TestRunOptions:
    """Test RunOptions validation and derived flags"""

    def test_defaults(self):
        opts = RunOptions()
        assert opts.jobs is None
        assert opts.fail_fast is False
        assert opts.relaxes_integrity is False
        assert opts.defers_constraints is False
        assert opts.needs_triggers is False

    @pytest.mark.parametrize("jobs", [0, -1, True, "4"])
    def test_invalid_jobs_rejected(self, jobs):
        with pytest.raises(ValueError, match="Invalid jobs"):
            RunOptions(jobs=jobs)

    def test_derived_flags(self):
        assert RunOptions(disable_integrity_v2=True).relaxes_integrity is True
        assert RunOptions(defer_constraints_v2=True).defers_constraints is True
        assert RunOptions(disable_user_triggers=True).needs_triggers is True
        assert RunOptions(disable_integrity=True).needs_triggers is True
        assert RunOptions(disable_integrity_v2=True).needs_triggers is False

    def test_from_args_ignores_unrelated_arguments(self):
        args = argparse.Namespace(jobs=3, fail_fast=True, tables="a,b", debug=False)
        opts = RunOptions.from_args(args)
        assert opts.jobs == 3
        assert opts.fail_fast is True
        assert opts.in_batches is False

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("TABLESYNC_JOBS", "2")
        monkeypatch.setenv("TABLESYNC_DEFER_CONSTRAINTS", "yes")
        monkeypatch.setenv("TABLESYNC_FAIL_FAST", "0")
        opts = RunOptions.from_env()
        assert opts.jobs == 2
        assert opts.defer_constraints is True
        assert opts.fail_fast is False


class TestDatabaseConfig:
    """Test URL resolution"""

    def test_args_take_precedence(self, monkeypatch):
        monkeypatch.setenv("TABLESYNC_SOURCE_URL", "postgresql:///env_src")
        args = argparse.Namespace(source_url="postgresql:///arg_src", destination_url="postgresql:///dst")
        config = DatabaseConfig.from_args_or_env(args)
        assert config.source_url == "postgresql:///arg_src"
        assert config.destination_url == "postgresql:///dst"

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("TABLESYNC_SOURCE_URL", "postgresql:///src")
        monkeypatch.setenv("TABLESYNC_DESTINATION_URL", "postgresql:///dst")
        config = DatabaseConfig.from_args_or_env(argparse.Namespace())
        assert config == DatabaseConfig("postgresql:///src", "postgresql:///dst")

    def test_missing_destination(self, monkeypatch):
        monkeypatch.delenv("TABLESYNC_DESTINATION_URL", raising=False)
        args = argparse.Namespace(source_url="postgresql:///src", destination_url=None)
        with pytest.raises(ValueError, match="No destination database"):
            DatabaseConfig.from_args_or_env(args)
