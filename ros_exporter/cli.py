"""CLI for the exporter: ``serve`` (default) runs the HTTP endpoint, ``probe`` scrapes once.

Examples:
  # Serve on the default :9483, 5 second per-command timeout
  ros-exporter serve --scrape.timeout 5

  # Scrape one router and print what was collected
  ros-exporter probe --target 192.168.88.1 --user prometheus --password <PW> --bgp --wireless
"""

from __future__ import annotations

import argparse
import os
import sys

from loguru import logger
from tabulate import tabulate

from ros_exporter.exceptions import ExporterError
from ros_exporter.models import DEFAULT_TIMEOUT, DEFAULT_USERNAME, ScrapeResult, Target
from ros_exporter.scrape import Scraper
from ros_exporter.server import DEFAULT_LISTEN_ADDRESS, DEFAULT_TELEMETRY_PATH, make_server, serve

COMMANDS = ("serve", "probe")


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        logger.warning(f"Ignoring {name}={value!r}: not a number")
        return default


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the multi-target HTTP endpoint until SIGINT/SIGTERM."""
    logger.info("Starting MikroTik Prometheus Exporter")
    logger.info(f"Listen Address: {args.listen_address}")
    logger.info(f"Metrics Path: {args.telemetry_path}")
    logger.info(f"Scrape Timeout: {args.scrape_timeout}s")
    logger.info(f"Default Username (if not provided via param): {args.default_username}")

    try:
        server = make_server(
            listen_address=args.listen_address,
            telemetry_path=args.telemetry_path,
            default_username=args.default_username,
            scrape_timeout=args.scrape_timeout,
        )
    except (OSError, ValueError) as e:
        logger.error(f"Cannot listen on {args.listen_address}: {e}")
        return 1

    serve(server)
    return 0


def format_result(result: ScrapeResult) -> str:
    """Render the record sets of one scrape as plain-text tables."""
    sections: list[str] = []

    summary = [
        ["address", result.address],
        ["up", result.up],
        ["had_error", result.had_error],
        ["duration", f"{result.duration_seconds:.2f}s"],
    ]
    sections.append(tabulate(summary, tablefmt="simple"))

    res = result.system_resource
    if res is not None:
        rows = [
            ["uptime", res.uptime],
            ["cpu load", f"{res.cpu_load_percent}%"],
            ["memory", f"{res.used_memory} / {res.total_memory} bytes"],
            ["storage", f"{res.used_storage} / {res.total_storage} bytes"],
        ]
        if result.routerboard is not None:
            rb = result.routerboard
            rows += [
                ["model", rb.model or res.model],
                ["serial", rb.serial_number or res.serial_number],
                ["firmware", rb.current_firmware],
            ]
        sections.append("System\n" + tabulate(rows, tablefmt="simple"))

    if result.health is not None:
        h = result.health
        rows = [
            ["cpu temperature", h.cpu_temperature],
            ["board temperature", h.board_temperature],
            ["voltage", h.voltage],
            ["current", h.current],
            ["power", h.power_consumed],
            ["fan", h.fan_speed],
        ]
        sections.append("Health\n" + tabulate([r for r in rows if r[1]], tablefmt="simple"))

    if result.interfaces:
        sections.append(
            "Interfaces\n"
            + tabulate(
                [
                    [i.name, i.type, "R" if i.running else "", "X" if i.disabled else "", i.rx_bytes, i.tx_bytes]
                    for i in result.interfaces
                ],
                headers=["name", "type", "running", "disabled", "rx bytes", "tx bytes"],
            )
        )

    if result.bgp_peers:
        sections.append(
            "BGP peers\n"
            + tabulate(
                [[p.name, p.remote_address, p.remote_as, p.state, p.uptime, p.prefix_count] for p in result.bgp_peers],
                headers=["name", "remote", "AS", "state", "uptime", "prefixes"],
            )
        )

    if result.ppp_sessions is not None:
        sections.append(
            f"PPP sessions ({len(result.ppp_sessions)})\n"
            + tabulate(
                [[s.name, s.service, s.caller_id, s.address, s.uptime_text] for s in result.ppp_sessions],
                headers=["name", "service", "caller id", "address", "uptime"],
            )
        )

    if result.wireless_interfaces:
        sections.append(
            "Wireless interfaces\n"
            + tabulate(
                [
                    [w.name, w.ssid, w.frequency, w.signal_strength, w.tx_rate_bps, w.rx_rate_bps]
                    for w in result.wireless_interfaces
                ],
                headers=["name", "ssid", "MHz", "signal", "tx bps", "rx bps"],
            )
        )

    if result.wireless_clients:
        sections.append(
            "Wireless clients\n"
            + tabulate(
                [
                    [c.interface_name, c.mac_address, c.signal_strength, c.tx_ccq, c.uptime_text]
                    for c in result.wireless_clients
                ],
                headers=["interface", "mac", "signal", "ccq", "uptime"],
            )
        )

    return "\n\n".join(sections)


def cmd_probe(args: argparse.Namespace) -> int:
    """Scrape one target and print the collected records."""
    try:
        target = Target(
            address=args.target,
            username=args.user,
            password=args.password,
            port=args.port,
            timeout=args.timeout,
        )
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    try:
        result = Scraper(
            target, collect_bgp=args.bgp, collect_ppp=args.ppp, collect_wireless=args.wireless
        ).scrape()
    except ExporterError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print(format_result(result))
    return 0 if result.up else 1


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; process-level defaults come from ``ROS_EXPORTER_*``."""
    parser = argparse.ArgumentParser(
        prog="ros-exporter",
        description="MikroTik RouterOS Prometheus exporter",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Serve /metrics for any target (default)")
    serve_parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        default=os.getenv("ROS_EXPORTER_LISTEN_ADDRESS", DEFAULT_LISTEN_ADDRESS),
        help=f"Address to listen on for web interface and telemetry (default: {DEFAULT_LISTEN_ADDRESS})",
    )
    serve_parser.add_argument(
        "--web.telemetry-path",
        dest="telemetry_path",
        default=os.getenv("ROS_EXPORTER_TELEMETRY_PATH", DEFAULT_TELEMETRY_PATH),
        help=f"Path under which to expose metrics (default: {DEFAULT_TELEMETRY_PATH})",
    )
    serve_parser.add_argument(
        "--scrape.timeout",
        dest="scrape_timeout",
        type=float,
        default=_env_float("ROS_EXPORTER_SCRAPE_TIMEOUT", DEFAULT_TIMEOUT),
        help=f"Per-command timeout in seconds (default: {DEFAULT_TIMEOUT:g})",
    )
    serve_parser.add_argument(
        "--default-username",
        dest="default_username",
        default=os.getenv("ROS_EXPORTER_DEFAULT_USERNAME", DEFAULT_USERNAME),
        help=f"Username when a request has no 'user' parameter (default: {DEFAULT_USERNAME})",
    )

    # probe
    probe_parser = subparsers.add_parser("probe", help="Scrape one target and print the results")
    probe_parser.add_argument("--target", required=True, help="Router address, optionally host:port")
    probe_parser.add_argument("--user", default=DEFAULT_USERNAME, help=f"API username (default: {DEFAULT_USERNAME})")
    probe_parser.add_argument("--password", default="", help="API password")
    probe_parser.add_argument("--port", type=int, help="API port (default: 8728)")
    probe_parser.add_argument("--bgp", action="store_true", help="Collect BGP peers")
    probe_parser.add_argument("--ppp", action="store_true", help="Collect active PPP sessions")
    probe_parser.add_argument("--wireless", action="store_true", help="Collect wireless interfaces and clients")
    probe_parser.add_argument(
        "--timeout", type=float, default=DEFAULT_TIMEOUT, help=f"Per-command timeout (default: {DEFAULT_TIMEOUT:g})"
    )

    return parser


def main(args: list[str] | None = None) -> None:
    """Main entry point; ``serve`` is assumed when no command is given."""
    argv = list(sys.argv[1:] if args is None else args)
    if not argv or argv[0] not in (*COMMANDS, "-h", "--help"):
        argv.insert(0, "serve")

    parsed = build_parser().parse_args(argv)
    try:
        if parsed.command == "probe":
            code = cmd_probe(parsed)
        else:
            code = cmd_serve(parsed)
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
