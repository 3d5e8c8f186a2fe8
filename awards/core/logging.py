"""Logging bootstrap for the awards service."""
from __future__ import annotations

import logging.config
import os
from pathlib import Path

_DEFAULT_CONFIG = Path(__file__).resolve().parent / "../.." / "configs" / "logging.yaml"

_RECORD_ATTRIBUTES = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys() | {"message", "asctime"}
)


class ContextFormatter(logging.Formatter):
    """Append the ``extra=`` fields of a record as ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES and not key.startswith("_")
        }
        if not context:
            return line
        return line + " " + " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))


def configure_logging(config_path: Path | None = None) -> None:
    """Apply the YAML logging config, or a plain INFO setup when it is missing.

    ``AWARDS_LOGGING_CONFIG`` overrides the bundled ``configs/logging.yaml``.
    """
    env_path = os.environ.get("AWARDS_LOGGING_CONFIG")
    path = config_path or (Path(env_path) if env_path else _DEFAULT_CONFIG)
    if path.exists():
        import yaml  # type: ignore[import-untyped]

        with path.open("r", encoding="utf-8") as config_file:
            logging.config.dictConfig(yaml.safe_load(config_file))
    else:
        logging.basicConfig(level=logging.INFO)


__all__ = ["ContextFormatter", "configure_logging"]
