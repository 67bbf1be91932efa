"""Tests for the service logging setup."""

import logging
from logging.handlers import RotatingFileHandler

from joint_pubsub.shared.utils.logging_config import log_path, setup_logging


class TestLogPath:
    def test_explicit_dir(self, tmp_path):
        assert log_path("joint_publisher", tmp_path) == tmp_path / "joint_publisher.log"

    def test_default_dir_follows_working_directory(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert log_path("joint_subscriber") == tmp_path / "logs" / "joint_subscriber.log"


class TestSetupLogging:
    def test_writes_rotating_log_file(self, tmp_path, restore_root_logger):
        path = setup_logging(server_name="joint_publisher", log_dir=tmp_path / "nested")
        assert path.exists()
        assert any(isinstance(h, RotatingFileHandler) for h in restore_root_logger.handlers)
        assert restore_root_logger.level == logging.INFO

    def test_second_call_reconfigures(self, tmp_path, restore_root_logger):
        setup_logging(server_name="joint_subscriber", log_dir=tmp_path)
        setup_logging(server_name="joint_subscriber", log_dir=tmp_path, debug=True)
        assert restore_root_logger.level == logging.DEBUG
        file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
