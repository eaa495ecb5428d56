"""Exporter entry point.

Sub-commands:
  serve   Multi-target /metrics endpoint (default)
  probe   One-off scrape of a single router, printed as tables

Examples:
  ros-exporter --web.listen-address :9483

  ros-exporter probe --target 192.168.88.1 --password <PW> --ppp
"""

from __future__ import annotations

import os
import sys

from tabulate import tabulate

from ros_exporter import __version__, configure_logging
from ros_exporter import glogger
from ros_exporter.cli import main as cli_main


def _print_startup_banner() -> None:
    startup_rows = [
        ["version", __version__],
        ["log level", os.getenv("LOGURU_LEVEL", "INFO")],
    ]

    for var in ("GITHUB_REF", "GITHUB_SHA", "BUILDTIME"):
        val = os.environ.get(var)
        if val and not val.endswith("_is_undefined"):
            startup_rows.append([var, val])

    table_str = tabulate(startup_rows, tablefmt="mixed_grid")
    lines = table_str.split("\n")
    table_width = len(lines[0])
    title = "ros-exporter starting up"
    title_border = "┍" + "━" * (table_width - 2) + "┑"
    title_row = "│ " + title.center(table_width - 4) + " │"
    separator = lines[0].replace("┍", "┝").replace("┑", "┥").replace("┯", "┿")

    glogger.opt(raw=True).info(
        "\n{}\n", title_border + "\n" + title_row + "\n" + separator + "\n" + "\n".join(lines[1:])
    )


def main() -> None:
    """Main entry point: configure logging, then dispatch to the CLI."""
    configure_logging()
    _print_startup_banner()
    cli_main(sys.argv[1:])


if __name__ == "__main__":
    main()
