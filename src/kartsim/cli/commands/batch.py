from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path  # cappa needs this at runtime
from typing import Annotated

import cappa
from tqdm import tqdm

from kartsim.cli.converters import resolve_race_setup
from kartsim.engine.logging import LOGGER_NAME
from kartsim.scripting.host import PythonScriptHost
from kartsim.simulation.runner import BatchSummary, run_race


@cappa.command(name="batch", help="Run the same roster over many seeds.")
@dataclass
class BatchCommand:
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
        cappa.Arg(short="-n", long="--names", num_args=-1, help="Display names."),
    ] = None
    config_file: Annotated[
        Path | None,
        cappa.Arg(short="-c", long="--config", help="Path to TOML config file."),
    ] = None
    rules: Annotated[
        list[str] | None,
        cappa.Arg(short="-R", long="--rule", num_args=-1, help="key=value overrides."),
    ] = None
    runs: Annotated[
        int,
        cappa.Arg(long="--runs", help="Number of races to run."),
    ] = 100
    seed_offset: Annotated[
        int,
        cappa.Arg(long="--seed-offset", help="Seed of the first race."),
    ] = 0

    def __call__(self) -> None:
        logging.getLogger(LOGGER_NAME).setLevel(logging.CRITICAL)
        if self.runs < 1:
            msg = f"--runs must be positive, got {self.runs}"
            raise cappa.Exit(msg, code=1)

        config, roster = resolve_race_setup(
            self.scripts,
            self.names,
            self.config_file,
            self.rules,
        )

        summary = BatchSummary()
        with (
            PythonScriptHost() as host,
            tqdm(desc="Racing", unit="race", total=self.runs, dynamic_ncols=True) as pbar,
        ):
            for seed in range(self.seed_offset, self.seed_offset + self.runs):
                result = run_race(config, roster, host, seed=seed, verbose=False)
                summary.add(result)
                pbar.update(1)

        tqdm.write(f"Races: {summary.races}  Abandoned: {summary.abandoned}")
        for competitor in roster:
            wins = summary.wins[competitor.name]
            tqdm.write(
                f"{competitor.name:<16} {wins:>6} wins ({wins / summary.races:.1%})",
            )
