from __future__ import annotations

from typing import Protocol

from rich.console import ConsoleRenderable


class ConsoleLike(Protocol):
    def print(self, msg: ConsoleRenderable | str | None = None) -> None: ...

    def info(self, msg: str) -> None: ...

    def warn(self, msg: str) -> None: ...

    def error(self, msg: str) -> None: ...

    def ok(self, msg: str) -> None: ...

    def print_header(self, title: str, style: str = "blue") -> None: ...

    def print_subheader(self, title: str) -> None: ...

    def print_closing_header(self, title: str) -> None: ...


class StdoutConsole:
    """Minimal console fallback.

    Keeps the release and ship layers usable without importing the CLI console.
    """

    def print(self, msg: ConsoleRenderable | str | None = None) -> None:
        print(msg)

    def info(self, msg: str) -> None:
        print(msg)

    def warn(self, msg: str) -> None:
        print(msg)

    def error(self, msg: str) -> None:
        print(msg)

    def ok(self, msg: str) -> None:
        print(msg)

    def print_header(self, title: str, style: str = "blue") -> None:
        print(f"\n== {title} ==\n")

    def print_subheader(self, title: str) -> None:
        print(f"\n{'~' * (len(title) + 5)}\n{title}\n{'~' * (len(title) + 5)}\n")

    def print_closing_header(self, title: str) -> None:
        print(f"\n{title}\n")


def coalesce_console(console: ConsoleLike | None) -> ConsoleLike:
    return console if console is not None else StdoutConsole()
