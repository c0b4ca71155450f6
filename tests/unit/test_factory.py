"""Tests for builder factory."""

import json
import os
from pathlib import Path

import pytest

from procbuilder.core.config import BuilderConfig
from procbuilder.core.exceptions import ConfigurationError, SpawnError
from procbuilder.core.factory import create_builder, create_logger
from procbuilder.core.logger import ProcBuilderLogger


class TestCreateBuilder:
    """Test create_builder()."""

    def test_explicit_config(self, tmp_path):
        config = BuilderConfig(env={"LANG": "C", "GIT_DIR": None}, cwd=str(tmp_path))

        builder = create_builder("git", config=config)

        assert builder.get_program() == "git"
        assert builder.get_cwd() == tmp_path
        assert builder.get_envs() == {"LANG": "C", "GIT_DIR": None}
        assert builder.get_env("GIT_DIR") is None

    def test_default_cwd(self):
        builder = create_builder("git", config=BuilderConfig())
        assert builder.get_cwd() == Path(os.getcwd())

    def test_loads_config_when_missing(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        monkeypatch.delenv("PROCBUILDER_CWD", raising=False)
        monkeypatch.delenv("PROCBUILDER_LOG_LEVEL", raising=False)
        config_dir = tmp_path / "proj" / ".procbuilder"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text(json.dumps({"env": {"PB_FACTORY": "yes"}}))

        builder = create_builder("make", project_root=tmp_path / "proj")

        assert builder.get_env("PB_FACTORY") == "yes"

    def test_invalid_config_propagates(self, tmp_path, monkeypatch):
        monkeypatch.setenv("HOME", str(tmp_path / "home"))
        config_dir = tmp_path / "proj" / ".procbuilder"
        config_dir.mkdir(parents=True)
        (config_dir / "config.json").write_text("{")

        with pytest.raises(ConfigurationError):
            create_builder("make", project_root=tmp_path / "proj")

    def test_logger_attached(self, tmp_path, monkeypatch):
        monkeypatch.setenv("PROCBUILDER_DISABLE_FILE_LOGGING", "1")
        logger = create_logger(BuilderConfig(log_level="DEBUG"))

        builder = create_builder("make", config=BuilderConfig(), logger=logger)

        assert isinstance(logger, ProcBuilderLogger)
        assert builder._logger is logger


class TestCreateLogger:
    def test_uses_config_level(self, tmp_path, monkeypatch):
        monkeypatch.delenv("PROCBUILDER_DISABLE_FILE_LOGGING", raising=False)
        logger = create_logger(BuilderConfig(log_level="WARNING"), log_dir=str(tmp_path))

        with logger.process_run("`true`", capture=False):
            pass
        logger.process_failed(SpawnError("kept"))
        logger.flush()

        lines = [json.loads(line) for line in logger.log_file.read_text().splitlines()]
        assert [line["message"] for line in lines] == ["process_failed"]
