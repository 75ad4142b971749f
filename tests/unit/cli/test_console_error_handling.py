from io import StringIO
from unittest.mock import patch

import pytest
import typer
from rich.console import Console

from loftsman.cli.shared.console import CLIConsole, console, with_error_handling
from loftsman.exceptions import SchemaInvalidError, ShipInProgressError


def test_with_error_handling_handles_loftsman_error():
    @with_error_handling
    def _command() -> None:
        raise ShipInProgressError("core-services")

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 1


def test_with_error_handling_prints_details():
    @with_error_handling
    def _command() -> None:
        raise SchemaInvalidError(["spec.charts.0: 'name' is a required property"])

    with patch.object(console, "handle_error") as handle_error:
        _command()

    message, details = handle_error.call_args.args
    assert message.startswith("manifest validation errors: (1) spec.charts.0")
    assert details == "1. spec.charts.0: 'name' is a required property"


def test_with_error_handling_handles_keyboard_interrupt():
    @with_error_handling
    def _command() -> None:
        raise KeyboardInterrupt

    with pytest.raises(typer.Exit) as excinfo:
        _command()

    assert excinfo.value.exit_code == 130


def test_with_error_handling_lets_other_errors_through():
    @with_error_handling
    def _command() -> None:
        raise RuntimeError("unexpected")

    with pytest.raises(RuntimeError):
        _command()


@pytest.mark.parametrize(
    ("response", "expected"),
    [("yes", True), ("  yes\n", True), ("y", False), ("YES", False), ("", False)],
)
def test_confirm_typed_requires_exact_word(response, expected):
    cli_console = CLIConsole(Console(file=StringIO()))

    with patch.object(cli_console.console, "input", return_value=response):
        assert cli_console.confirm_typed("Avast ship", "details") is expected


def test_confirm_typed_eof_declines():
    cli_console = CLIConsole(Console(file=StringIO()))

    with patch.object(cli_console.console, "input", side_effect=EOFError):
        assert cli_console.confirm_typed("Avast ship") is False
