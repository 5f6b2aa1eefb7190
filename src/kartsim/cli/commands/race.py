"""CLI command for running a single race."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa

from kartsim.cli.converters import resolve_race_setup
from kartsim.core.errors import ReportWriteError
from kartsim.engine.logging import configure_logging
from kartsim.scripting.host import PythonScriptHost
from kartsim.simulation.report import REPORT_DIR, encode_report, write_report
from kartsim.simulation.runner import run_race

logger = logging.getLogger(__name__)


@cappa.command(
    name="race",
    help="Run a single race between control scripts and write the report.",
)
@dataclass
class RaceCommand:
    scripts: Annotated[
        list[Path] | None,
        cappa.Arg(
            short="-s",
            long="--scripts",
            num_args=-1,
            help="Space separated list of control script paths.",
        ),
    ] = None
    names: Annotated[
        list[str] | None,
        cappa.Arg(
            short="-n",
            long="--names",
            num_args=-1,
            help="Display names, one per script. Defaults to the file names.",
        ),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    seed: Annotated[
        int | None,
        cappa.Arg(long="--seed", help="Seed exposed to the scripts."),
    ] = None
    rules: Annotated[
        list[str] | None,
        cappa.Arg(
            short="-R",
            long="--rule",
            num_args=-1,
            help="Config overrides as key=value (e.g. banana.target_price=300).",
        ),
    ] = None
    output_dir: Annotated[
        Path,
        cappa.Arg(short="-o", long="--output-dir", help="Directory for the report."),
    ] = REPORT_DIR
    quiet: Annotated[
        bool,
        cappa.Arg(short="-q", long="--quiet", help="Do not print the report."),
    ] = False

    def __call__(self) -> None:
        configure_logging()
        config, roster = resolve_race_setup(
            self.scripts,
            self.names,
            self.config_file,
            self.rules,
        )

        with PythonScriptHost() as host:
            result = run_race(config, roster, host, seed=self.seed)

        if result.error_code is not None:
            logger.warning(f"Race ended without a winner ({result.error_code})")

        # We use print here intentionally for the report, distinct from logging
        if not self.quiet:
            print(encode_report(result.report).decode("utf-8"))

        try:
            path = write_report(result.report, self.output_dir)
        except ReportWriteError as e:
            raise cappa.Exit(str(e), code=1) from e

        logger.info(
            f"Race finished in {result.turn_count} turns ({result.execution_time_ms:.2f}ms), "
            f"winner: {result.winner_name}. Report written to {path}",
        )
