"""
API Security Tester: command line entry point.

    api-security-tester scan -u https://api.example.com -e /login,/users -t all -v

Exit status: 0 when nothing was found, 1 when at least one vulnerability
was reported, 2 for configuration errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from apiprobe import __version__, config
from apiprobe.models.scan import ProbeResult, ScanOptions, ScanReport, Target
from apiprobe.scanner import ALL, PROBES, ScanConfigError, scan

EXIT_CLEAN = 0
EXIT_VULNERABLE = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def _setup_logging(verbose: bool = False):
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format=config.LOG_FORMAT,
        datefmt=config.LOG_DATEFMT,
        handlers=[logging.StreamHandler()],
    )
    # Keep httpx/httpcore request chatter out of verbose output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _split(value: str | None) -> list[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


# ── Output ────────────────────────────────────────────────────────────────────


def _result_line(result: ProbeResult) -> str:
    probe = PROBES[result.probe_name]
    if result.skipped:
        return f"  - {result.probe_name}: skipped ({result.skip_reason})"
    if result.vulnerable:
        return f"  ✗ {probe.vulnerable_label}: {result.details}"
    line = f"  ✓ {probe.clean_label}"
    if result.details:
        line += f" ({result.details})"
    return line


def format_summary(report: ScanReport) -> str:
    lines = ["", "Scan Summary"]
    if report.stopped:
        lines.append("Scan was stopped before completion; results are partial.")
    if report.vulnerability_count > 0:
        lines.append(f"Found {report.vulnerability_count} vulnerabilities!")
        lines.append("Recommendations:")
        lines.extend(f"- {rec}" for rec in report.recommendations)
    else:
        lines.append("No vulnerabilities found. Good job!")
    return "\n".join(lines)


# ── Subcommands ───────────────────────────────────────────────────────────────


def cmd_scan(args) -> int:
    """Run a scan and print the results."""
    _setup_logging(args.verbose)

    endpoints = _split(args.endpoints) or ["/api"]
    tests = _split(args.tests) or [ALL]

    try:
        options = ScanOptions(
            verbose=args.verbose,
            request_timeout_ms=args.timeout,
            rate_limit_burst_size=args.burst_size,
            rate_limit_window_ms=args.window,
            concurrent_probes=args.concurrent,
        )
    except ValueError as e:
        print(f"[error] Invalid option: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    current = {"url": None}

    async def on_result(target: Target, result: ProbeResult):
        if args.json:
            return
        if current["url"] != target.url:
            current["url"] = target.url
            print(f"\nTesting endpoint: {target.url}")
        print(_result_line(result))

    if not args.json:
        print("API Security Tester")
        print(f"Target: {args.url}")
        print(f"Endpoints: {', '.join(endpoints)}")
        print(f"Tests: {', '.join(tests)}")

    try:
        report = asyncio.run(scan(
            args.url,
            endpoints,
            auth_token=args.auth,
            selected_tests=tests,
            verbose=args.verbose,
            options=options,
            on_result=on_result,
        ))
    except ScanConfigError as e:
        print(f"[error] {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except KeyboardInterrupt:
        print("[scan] Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    if args.json:
        print(report.model_dump_json(indent=2))
    else:
        print(format_summary(report))

    return EXIT_VULNERABLE if report.vulnerability_count > 0 else EXIT_CLEAN


# ── Entry point ───────────────────────────────────────────────────────────────


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="api-security-tester",
        description="CLI tool to test API security vulnerabilities",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="command")

    p = sub.add_parser("scan", help="Scan an API endpoint for security vulnerabilities")
    p.add_argument("-u", "--url", required=True, help="API base URL to test")
    p.add_argument("-e", "--endpoints", default="/api",
                   help="Comma-separated list of API endpoints to test (default: /api)")
    p.add_argument("-a", "--auth", default=None, help="Authentication token (if required)")
    p.add_argument("-t", "--tests", default=ALL,
                   help=f"Comma-separated list of tests to run: {ALL}, {', '.join(PROBES)} (default: all)")
    p.add_argument("-v", "--verbose", action="store_true", help="Show detailed output")
    p.add_argument("--timeout", type=int, default=config.REQUEST_TIMEOUT_MS,
                   help="Per-request timeout in milliseconds")
    p.add_argument("--burst-size", type=int, default=config.RATE_LIMIT_BURST_SIZE,
                   help="Requests in the rate limiting burst")
    p.add_argument("--window", type=int, default=config.RATE_LIMIT_WINDOW_MS,
                   help="Rate limiting burst window in milliseconds")
    p.add_argument("--concurrent", action="store_true",
                   help="Run the probes of one endpoint concurrently")
    p.add_argument("--json", action="store_true", help="Print the report as JSON")
    p.set_defaults(func=cmd_scan)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return EXIT_CONFIG_ERROR
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
