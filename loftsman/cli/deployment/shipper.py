"""Ship and avast orchestration.

A ship releases every chart of a manifest while holding the manifest's ship
record, then records how the run ended:

- success: every chart released
- failed: one or more charts recorded a release error
- crashed: an unexpected error interrupted the release loop
- cancelled: the process received a termination signal
"""

from __future__ import annotations

import signal
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from types import FrameType
from typing import TYPE_CHECKING, Any

import httpx
from loguru import logger

from loftsman.exceptions import (
    NoActiveShipError,
    SettingsError,
    ShipCrashedError,
    ShipFailedError,
)
from loftsman.infra.constants import DEFAULT_CONSTANTS, LoftsmanConstants, ShipStatus
from loftsman.manifest import ChartsSourceConfig, ReleaseContext, ReleaseError
from loftsman.utils.console_like import ConsoleLike, coalesce_console

from .ship_record import ShipRecord

if TYPE_CHECKING:
    from loftsman.infra.k8s import KubernetesControllerSync
    from loftsman.manifest import VersionedManifest
    from loftsman.runtime.config.settings import Settings
    from loftsman.runtime.logging import ShipLog

    from .shell_commands import ShellCommands

CANCEL_EXIT_CODE = 130

SHIP_SIGNALS = tuple(
    getattr(signal, name)
    for name in ("SIGINT", "SIGTERM", "SIGHUP", "SIGQUIT")
    if hasattr(signal, name)
)

AVAST_WARNING = (
    "loftsman avast is only meant for unlocking stuck ship runs, those that\n"
    "hit a fatal error and left the ship record in the active state.\n"
    "If another loftsman ship is running for the manifest {name}, cancel it\n"
    "by stopping that process instead. Use avast only to recover from bad\n"
    "loftsman states."
)


class Shipper:
    """Runs ship and avast for a manifest.

    Attributes:
        settings: Settings for this run
        kubernetes: Cluster client holding the ship record
        commands: Shell commands (helm)
        ship_log: Log of this run, written into the ship record
        console: Console for prompts and warnings
        constants: Loftsman constants
    """

    def __init__(
        self,
        settings: Settings,
        kubernetes: KubernetesControllerSync,
        commands: ShellCommands,
        ship_log: ShipLog,
        *,
        console: ConsoleLike | None = None,
        constants: LoftsmanConstants = DEFAULT_CONSTANTS,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.settings = settings
        self.kubernetes = kubernetes
        self.commands = commands
        self.ship_log = ship_log
        self.console = coalesce_console(console)
        self.constants = constants
        self.http_client = http_client
        self._record: ShipRecord | None = None
        self._manifest_text = ""
        self._cancelling = False

    def _ship_record(self, manifest_name: str) -> ShipRecord:
        return ShipRecord(
            self.kubernetes,
            self.settings.namespace,
            manifest_name,
            constants=self.constants,
        )

    # =========================================================================
    # Ship
    # =========================================================================

    def ship(self, manifest: VersionedManifest, manifest_text: str) -> None:
        """Release a manifest's charts under its ship record.

        Args:
            manifest: Validated manifest
            manifest_text: The manifest text as read, stored with the result

        Raises:
            SettingsError: If the charts source settings are inconsistent or
                the manifest has no name
            ShipInProgressError: If another ship for the manifest is active
            ClusterError: If the ship record can't be read or created
            ShipFailedError: If one or more charts failed to release
            ShipCrashedError: If the release loop was interrupted by an error
        """
        self.settings.validate_charts_source()
        if not manifest.name:
            raise SettingsError(
                "the manifest has no metadata.name, which is required to ship"
            )

        self.ship_log.header("Shipping your Helm workloads with Loftsman")

        record = self._ship_record(manifest.name)
        record.ensure_namespace()
        record.check_not_active()

        default_source = ChartsSourceConfig.from_settings(self.settings.charts_source)
        self._log_charts_source(default_source)
        logger.info(
            "Running a release for the provided manifest at "
            f"{self.settings.manifest_path}"
        )

        self._record = record
        self._manifest_text = manifest_text
        with self.signal_handlers():
            record.initialize()
            try:
                errors = manifest.release(
                    ReleaseContext(
                        kubernetes=self.kubernetes,
                        helm=self.commands.helm,
                        default_source=default_source,
                        temp_directory=self._temp_directory(),
                        ship_log=self.ship_log,
                        http_client=self.http_client,
                    )
                )
            except Exception as e:
                logger.opt(exception=e).error(f"Ship crashed: {e}")
                self._record_result(ShipStatus.CRASHED)
                raise ShipCrashedError(f"The ship crashed unexpectedly: {e}") from e

            self._record_result(ShipStatus.FAILED if errors else ShipStatus.SUCCESS)
        self._record = None

        if errors:
            self._report_errors(errors)
            raise ShipFailedError(
                "Some charts did not release successfully, see above and/or the "
                "output log file for more info"
            )
        self.console.ok(f"Shipped manifest {manifest.name}")

    def _temp_directory(self) -> Path:
        if self.settings.temp_directory is None:
            return self.settings.create_temp_directory()
        return self.settings.temp_directory

    def _log_charts_source(self, source: ChartsSourceConfig) -> None:
        if source.path is not None:
            logger.info(
                f"Loftsman will use the packaged charts at {source.path} as the "
                "Helm install source"
            )
        elif source.repo:
            logger.info(
                f"Loftsman will use the charts repo at {source.repo} as the Helm "
                "install source"
            )
            if source.repo_username and source.repo_password:
                logger.info(
                    "Charts repo access will authenticate with credentials: "
                    f"{source.repo_username}/*********"
                )

    def _record_result(self, status: ShipStatus) -> None:
        if self._record is None:
            return
        self._record.record_result(
            status,
            manifest_text=self._manifest_text,
            log_text=self.ship_log.record,
        )

    def _report_errors(self, errors: list[ReleaseError]) -> None:
        self.ship_log.closing_header("Encountered errors during the manifest release:")
        for error in errors:
            logger.bind(
                chart=error.chart,
                version=error.version,
                namespace=error.namespace,
            ).error(error.message)

    # =========================================================================
    # Cancellation
    # =========================================================================

    def handle_signal(self, signum: int, frame: FrameType | None) -> None:
        """Record the run as cancelled and stop the process.

        A signal arriving while the cancelled status is being written is
        ignored so that write completes.
        """
        name = signal.Signals(signum).name
        if self._cancelling:
            logger.warning(f"Received signal {name} while cancelling, ignoring")
            return
        self._cancelling = True
        logger.warning(f"Received signal {name}, cancelling")
        self._record_result(ShipStatus.CANCELLED)
        sys.exit(CANCEL_EXIT_CODE)

    @contextmanager
    def signal_handlers(self) -> Iterator[None]:
        """Install `handle_signal` for termination signals while active."""
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not in the main thread, leaving signal handlers alone")
            yield
            return

        previous: dict[int, Any] = {}
        for sig in SHIP_SIGNALS:
            previous[sig] = signal.signal(sig, self.handle_signal)
        try:
            yield
        finally:
            for sig, handler in previous.items():
                signal.signal(sig, handler)

    # =========================================================================
    # Avast
    # =========================================================================

    def avast(
        self,
        manifest_name: str | None,
        confirm: Callable[[str, str], bool],
    ) -> bool:
        """Force the active ship record of a manifest to `avasted`.

        This doesn't stop a running ship process; it only unlocks a record
        left active by a ship that died.

        Args:
            manifest_name: Manifest whose ship record to clear
            confirm: Callback taking (action, details), returning True only if
                the user typed the confirmation word

        Returns:
            True if the record was avasted, False if the user declined

        Raises:
            SettingsError: If no manifest name is available
            NoActiveShipError: If no ship is active for the manifest
        """
        if not manifest_name:
            raise SettingsError(
                "Unable to determine manifest name in order to avast, one of a "
                "manifest path or name must be provided"
            )

        self.ship_log.header(
            f"Clearing/halting any ship in progress for manifest: {manifest_name}"
        )
        record = self._ship_record(manifest_name)
        if record.find_active() is None:
            raise NoActiveShipError(manifest_name)

        if not confirm(
            f"Avast ship in progress for manifest {manifest_name}",
            AVAST_WARNING.format(name=manifest_name),
        ):
            logger.info(
                f"User did not enter '{self.constants.AVAST_CONFIRMATION}', "
                "not running avast"
            )
            return False

        record.avast()
        logger.info(f"Avasted the ship in progress for manifest {manifest_name}")
        return True
