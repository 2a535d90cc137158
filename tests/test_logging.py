# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for pygmy/logging.py."""

import logging

from pygmy.logging import DEBUG_FORMAT, DEFAULT_FORMAT, configure_logging


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def teardown_method(self) -> None:
        """Reset logging after each test."""
        root = logging.getLogger()
        root.handlers.clear()
        root.setLevel(logging.WARNING)

    def test_sets_log_level(self) -> None:
        configure_logging(level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG

    def test_adds_single_stream_handler(self) -> None:
        configure_logging()
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0], logging.StreamHandler)

    def test_repeated_calls_replace_handler(self) -> None:
        """Reconfiguring does not stack handlers."""
        configure_logging()
        configure_logging(level=logging.DEBUG)
        assert len(logging.getLogger().handlers) == 1

    def test_default_format(self) -> None:
        configure_logging()
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == DEFAULT_FORMAT

    def test_debug_format_includes_line_numbers(self) -> None:
        configure_logging(level=logging.DEBUG)
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == DEBUG_FORMAT
        assert "%(lineno)d" in DEBUG_FORMAT

    def test_custom_format(self) -> None:
        configure_logging(format_string="%(message)s")
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == "%(message)s"

    def test_module_loggers_propagate(self) -> None:
        """Messages from pygmy modules reach the root handler."""
        configure_logging(format_string="%(name)s: %(message)s")
        root = logging.getLogger()
        records: list[logging.LogRecord] = []
        root.handlers[0].emit = records.append  # type: ignore[method-assign]

        logging.getLogger("pygmy.resolv").info("Added nameserver")

        assert len(records) == 1
        assert records[0].name == "pygmy.resolv"
