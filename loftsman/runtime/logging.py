"""Logging for loftsman runs.

A `ShipLog` installs the loguru sinks for one CLI run:

- a human-readable console sink on stderr,
- an optional JSON-lines file sink (`--json-log-path`),
- an in-memory record of JSON lines, written into the ship record so the
  outcome of a ship can be inspected from the cluster later.

Section headers go through the rich console and are also recorded, tagged
with a `header`, `sub-header` or `closing-header` extra field.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

from loguru import logger

from loftsman.utils.console_like import ConsoleLike, coalesce_console

if TYPE_CHECKING:
    from loguru import Message, Record

HEADER_KEYS = ("header", "sub-header", "closing-header")
CHART_KEYS = ("chart", "version", "namespace")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> <level>{level: <7}</level> "
    "{message}{extra[chart_fields]}"
)


def _is_header(record: Record) -> bool:
    return any(key in record["extra"] for key in HEADER_KEYS)


def _console_filter(record: Record) -> bool:
    if _is_header(record) or record["extra"].get("console") is False:
        return False
    fields = " ".join(
        f"{key}={record['extra'][key]}"
        for key in CHART_KEYS
        if key in record["extra"]
    )
    record["extra"]["chart_fields"] = f" {fields}" if fields else ""
    return True


def record_line(record: Record) -> str:
    """Render a loguru record as one compact JSON line."""
    entry: dict[str, Any] = {
        "level": record["level"].name.lower(),
        "time": record["time"].isoformat(),
    }
    entry.update(
        {
            key: value
            for key, value in record["extra"].items()
            if key not in ("chart_fields", "json_line", "console")
        }
    )
    if record["message"]:
        entry["message"] = record["message"]
    if record["exception"] is not None and record["exception"].value is not None:
        entry["error"] = str(record["exception"].value)
    return json.dumps(entry, default=str)


class ShipLog:
    """Collects the log output of one loftsman command.

    Use as a context manager; the sinks are removed again on exit.

    Example:
        with ShipLog("ship", json_log_path=Path("ship.jsonl")) as ship_log:
            logger.info("Shipping")
            text = ship_log.record
    """

    def __init__(
        self,
        command: str,
        *,
        json_log_path: Path | None = None,
        console: ConsoleLike | None = None,
        echo: bool = True,
        level: str = "INFO",
    ) -> None:
        """Initialize the ship log.

        Args:
            command: Command name recorded on every line (e.g. "ship")
            json_log_path: Optional file that receives JSON log lines
            console: Console used for section headers
            echo: Whether to install the stderr console sink
            level: Minimum level for the console and file sinks
        """
        self.command = command
        self.json_log_path = json_log_path
        self.console = coalesce_console(console)
        self.echo = echo
        self.level = level
        self._lines: list[str] = []
        self._handler_ids: list[int] = []

    def __enter__(self) -> ShipLog:
        self.start()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if isinstance(exc, Exception):
            logger.bind(console=False).error(str(exc))
        self.stop()

    def start(self) -> None:
        """Install the sinks for this run."""
        logger.configure(extra={"command": self.command})
        if self.echo:
            logger.remove()
            self._handler_ids.append(
                logger.add(
                    sys.stderr,
                    level=self.level,
                    format=CONSOLE_FORMAT,
                    filter=_console_filter,
                    colorize=None,
                )
            )
        if self.json_log_path is not None:
            self._handler_ids.append(
                logger.add(
                    self.json_log_path,
                    level=self.level,
                    format="{extra[json_line]}",
                    filter=self._json_filter,
                )
            )
        self._handler_ids.append(logger.add(self._write_record, level="INFO"))

    def stop(self) -> None:
        """Remove the sinks installed by `start`."""
        for handler_id in self._handler_ids:
            try:
                logger.remove(handler_id)
            except ValueError:
                pass
        self._handler_ids.clear()
        logger.configure(extra={})

    @staticmethod
    def _json_filter(record: Record) -> bool:
        record["extra"]["json_line"] = record_line(record)
        return True

    def _write_record(self, message: Message) -> None:
        self._lines.append(record_line(message.record))

    @property
    def record(self) -> str:
        """The accumulated log text of this run, one JSON object per line."""
        return "\n".join(self._lines) + ("\n" if self._lines else "")

    # =========================================================================
    # Section headers
    # =========================================================================

    def header(self, text: str) -> None:
        self.console.print_header(text)
        logger.bind(header=text).info("")

    def sub_header(self, text: str) -> None:
        self.console.print_subheader(text)
        logger.bind(**{"sub-header": text}).info("")

    def closing_header(self, text: str) -> None:
        self.console.print_closing_header(text)
        logger.bind(**{"closing-header": text}).info("")
