"""
Reusable Typer Options Module

Annotated option types shared by the main callback. Each alias carries the
option declaration; the default is given where the parameter is declared.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer

from shipvault.cli.common.context import LogLevel

# Verbose option - count-based for multiple -v flags
VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Enable verbose output (equivalent to --log-level DEBUG).",
    ),
]

# Log level option - enum-based with case-insensitive choices
LogLevelOption = Annotated[
    LogLevel,
    typer.Option(
        "--log-level",
        case_sensitive=False,
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR). Default: WARNING.",
    ),
]

# JSON output option - flag-based
JsonOutputOption = Annotated[
    bool,
    typer.Option(
        "--json",
        help="Enable machine-readable JSON output instead of human-readable format.",
    ),
]

ConfigOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to a TOML configuration file.",
        dir_okay=False,
    ),
]

# Version option - for main app only
VersionOption = Annotated[
    bool,
    typer.Option(
        "--version",
        "-V",
        help="Show version information and exit.",
        is_eager=True,
    ),
]
