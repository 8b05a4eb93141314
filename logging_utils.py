#!/usr/bin/env python3
"""Logging utilities for github2gitea."""

import os
import sys
import time

import colorama

from security import SecurityValidator

# Initialize colorama for cross-platform colored output
colorama.init(autoreset=True)


class Logger:
    """Handles formatted console output with colors and security-aware logging.

    Extra keyword arguments are rendered as ``key=value`` pairs after the
    message so each line stays greppable.
    """

    PROCESS_NAME = "github2gitea"
    debug_enabled = False

    @classmethod
    def set_debug(cls, enabled: bool) -> None:
        cls.debug_enabled = enabled

    @classmethod
    def debug(cls, *messages: str, **fields: object) -> None:
        if not cls.debug_enabled:
            return
        cls._write_stdout(colorama.Fore.LIGHTBLACK_EX, *messages, **fields)

    @classmethod
    def info(cls, *messages: str, **fields: object) -> None:
        cls._write_stdout(colorama.Fore.CYAN, *messages, **fields)

    @classmethod
    def warn(cls, *messages: str, **fields: object) -> None:
        cls._write_stdout(colorama.Fore.YELLOW, *messages, **fields)

    @classmethod
    def error(cls, *messages: str, **fields: object) -> None:
        cls._write_stderr(colorama.Fore.RED, *messages, **fields)

    @classmethod
    def security_event(cls, event_type: str, details: str) -> None:
        """Log security events with appropriate sanitization."""
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
        cls._write_stderr(
            colorama.Fore.MAGENTA,
            f"[SECURITY:{event_type}] {timestamp}: {details}",
        )

    @classmethod
    def _write_stdout(cls, color: str, *messages: str, **fields: object) -> None:
        sys.stdout.write(cls._format_line(color, *messages, **fields) + "\n")

    @classmethod
    def _write_stderr(cls, color: str, *messages: str, **fields: object) -> None:
        sys.stderr.write(cls._format_line(color, *messages, **fields) + "\n")

    @classmethod
    def _get_header(cls) -> str:
        return f"[{cls.PROCESS_NAME}:{os.getpid()}]"

    @classmethod
    def _format_fields(cls, fields: dict) -> str:
        parts = []
        for key, value in fields.items():
            text = str(value)
            if not text or " " in text:
                text = f'"{text}"'
            parts.append(f"{key}={text}")
        return " ".join(parts)

    @classmethod
    def _format_line(cls, color: str, *messages: str, **fields: object) -> str:
        header = cls._get_header()
        message = " ".join(str(m) for m in messages)
        if fields:
            message = f"{message} {cls._format_fields(fields)}"
        message = SecurityValidator.sanitize_for_logging(message)
        return f"{color}{header}{colorama.Style.RESET_ALL} {message}"
