#!/usr/bin/env python3
"""
SSL Certificate Notifier - Main Application Entry Point
"""

import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from ssl_cert_notifier import __version__
from ssl_cert_notifier.checker import CertificateChecker
from ssl_cert_notifier.config import Config, create_example_config, load_config
from ssl_cert_notifier.inspector import CertificateInspector
from ssl_cert_notifier.logger import setup_logging
from ssl_cert_notifier.notifications import EmailReportNotifier, WebhookAlertNotifier


class SSLCertNotifier:
    """Main application class for SSL Certificate Notifier."""

    def __init__(
        self, config_path: Optional[str] = None, env_file: Optional[str] = None, once: bool = False
    ):
        self.config: Optional[Config] = None
        self.checker: Optional[CertificateChecker] = None
        self.config_path = config_path
        self.env_file = env_file
        self.once = once
        self.logger = logging.getLogger(__name__)

    def initialize(self) -> None:
        """Load configuration, set up logging and build the checker."""
        self.config = load_config(self.config_path, self.env_file)
        setup_logging(self.config)
        self.logger.info("SSL Certificate Notifier started")

        inspector = CertificateInspector(timeout=self.config.connect_timeout)
        report_notifier = EmailReportNotifier(
            self.config.smtp, timeout=self.config.connect_timeout
        )
        alert_notifier = WebhookAlertNotifier(
            self.config.webhook_url, timeout=self.config.http_timeout
        )
        self.checker = CertificateChecker(
            config=self.config,
            inspector=inspector,
            report_notifier=report_notifier,
            alert_notifier=alert_notifier,
        )
        self.logger.info(f"Monitoring {len(self.config.endpoints)} endpoints")

    async def run(self) -> None:
        """Run a single check, or the daily schedule until a shutdown signal."""
        if not self.checker:
            self.initialize()

        assert self.checker is not None, "Checker should be initialized"

        if self.once:
            self.logger.info("Running a single certificate check")
            try:
                await self.checker.run_cycle()
            finally:
                await self.checker.stop()
            return

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            try:
                loop.add_signal_handler(sig, self._signal_handler, sig)
            except NotImplementedError:
                # Windows event loops do not support signal handlers
                signal.signal(sig, lambda signum, frame: self._signal_handler(signum))

        await self.checker.start()
        try:
            await self.checker.wait()
        except asyncio.CancelledError:
            self.logger.info("Check loop cancelled")
        finally:
            await self.shutdown()

    def _signal_handler(self, signum: int) -> None:
        """Handle shutdown signals."""
        self.logger.info(f"Received signal {signum}, initiating graceful shutdown")
        if self.checker:
            self.checker.request_stop()

    async def shutdown(self) -> None:
        """Gracefully shutdown all components."""
        self.logger.info("Starting graceful shutdown")
        if self.checker:
            await self.checker.stop()
        self.logger.info("Graceful shutdown completed")


@click.command()
@click.option(
    "--config",
    "-f",
    type=click.Path(exists=True, path_type=Path),
    help="Path to YAML configuration file",
)
@click.option(
    "--env-file",
    type=click.Path(exists=True, path_type=Path),
    help="Path to dotenv file (defaults to .env when present)",
)
@click.option("--once", is_flag=True, help="Run a single certificate check and exit")
@click.option(
    "--init-config",
    type=click.Path(path_type=Path),
    help="Write an example configuration file and exit",
)
@click.option("--version", "-v", is_flag=True, help="Show version information")
def main(
    config: Optional[Path],
    env_file: Optional[Path],
    once: bool,
    init_config: Optional[Path],
    version: bool,
) -> None:
    """SSL Certificate Notifier - Report TLS certificate expiry by email and webhook."""
    if version:
        click.echo(f"SSL Certificate Notifier v{__version__}")
        return

    if init_config:
        create_example_config(str(init_config))
        click.echo(f"Example configuration written to {init_config}")
        return

    try:
        app = SSLCertNotifier(
            str(config) if config else None, str(env_file) if env_file else None, once=once
        )
        app.initialize()
        asyncio.run(app.run())
    except KeyboardInterrupt:
        click.echo("\nShutdown requested by user")
        sys.exit(0)
    except Exception as e:
        click.echo(f"Application failed: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
