"""
Rate-limited HTTP load tester.

Sends a fixed number of GET requests to one URL, spread over a time window
(rate = ceil(requests / window) per second), then prints a summary, a
table of every request and one detail line per request.

Usage:
    python loadtest.py --url http://localhost:8000/test --requests 100 --window 10
    python loadtest.py                       # prompts for url / requests / window
    python loadtest.py --url ... --requests 50 --window 5 --client requests --live
    python loadtest.py --url ... --requests 50 --window 5 --raise-for-status --check
"""

import argparse
import asyncio
import logging
import sys

from client import CLIENTS, check_connectivity
from engine import LoadEngine, compute_rate
from report import outcome_line, render_report
from settings import DEFAULT_CLIENT, DEFAULT_TIMEOUT_SECONDS, LOG_FORMAT, LOG_LEVEL
from validation import (ConfigurationError, parse_time_window, parse_total_requests,
                        validate_inputs, validate_url)


class Colors:
    """ANSI color codes for terminal output"""
    HEADER = '\033[95m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'
    CYAN = '\033[96m'


def print_header(text):
    print(f"\n{Colors.HEADER}{Colors.BOLD}{text}{Colors.ENDC}")


def print_success(text):
    print(f"{Colors.OKGREEN}✓ {text}{Colors.ENDC}")


def print_fail(text):
    print(f"{Colors.FAIL}✗ {text}{Colors.ENDC}", file=sys.stderr)


def print_info(text):
    print(f"{Colors.CYAN}{text}{Colors.ENDC}")


# ---------- Arguments ----------
def positive_float(text):
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Rate-limited HTTP load tester")
    p.add_argument("--url", help="Target URL (e.g. https://example.com)")
    p.add_argument("--requests", dest="total_requests", help="Total number of requests (positive integer)")
    p.add_argument("--window", dest="time_window", help="Time window in seconds (positive number)")
    p.add_argument("--timeout", type=positive_float, default=DEFAULT_TIMEOUT_SECONDS,
                   help=f"Per-request timeout in seconds (default: {DEFAULT_TIMEOUT_SECONDS:g})")
    p.add_argument("--client", choices=sorted(CLIENTS), default=DEFAULT_CLIENT,
                   help=f"HTTP client implementation (default: {DEFAULT_CLIENT})")
    p.add_argument("--raise-for-status", action="store_true",
                   help="Count non-2xx responses as failed requests")
    p.add_argument("--live", action="store_true", help="Print each request as it completes")
    p.add_argument("--check", action="store_true", help="Check the URL is reachable before starting")
    p.add_argument("--no-table", action="store_true", help="Skip the tabular results")
    p.add_argument("--no-details", action="store_true", help="Skip the detailed per-request lines")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    return p.parse_args(argv)


# ---------- Inputs ----------
def prompt(question, input_func=input):
    try:
        return input_func(question).strip()
    except EOFError:
        return ""


def collect_inputs(args, input_func=input):
    """Take url / requests / window from flags, prompting for whatever is missing."""
    if args.url is None or args.total_requests is None or args.time_window is None:
        print("Please provide the following details for the load test:")
    url = args.url
    if url is None:
        url = prompt("Enter the URL to test (e.g., https://example.com): ", input_func)
    validate_url(url)

    total_text = args.total_requests
    if total_text is None:
        total_text = prompt("Enter the total number of requests (positive integer): ", input_func)
    total_requests = parse_total_requests(total_text)

    window_text = args.time_window
    if window_text is None:
        window_text = prompt("Enter the time window in seconds (positive number): ", input_func)
    time_window = parse_time_window(window_text)

    validate_inputs(url, total_requests, time_window)
    return url, total_requests, time_window


def build_client(name, raise_for_status):
    return CLIENTS[name](raise_for_status=raise_for_status)


def print_live(outcome):
    print(outcome_line(outcome), flush=True)


# ---------- Main ----------
def main(argv=None, input_func=input):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else LOG_LEVEL, format=LOG_FORMAT)

    try:
        url, total_requests, time_window = collect_inputs(args, input_func)
    except ConfigurationError as e:
        print_fail(f"Error running load test: {e}")
        return 1

    if args.check:
        print_info("Checking server connectivity...")
        reachable, detail = check_connectivity(url)
        if not reachable:
            print_fail(f"Server NOT reachable at {url}: {detail}")
            return 1
        print_success(f"Server is reachable ({detail})")

    rate = compute_rate(total_requests, time_window)
    print(f"\nStarting load test for {url}")
    print(f"Total requests: {total_requests}, Time window: {time_window:g} seconds, Rate: {rate} req/s")
    if args.live:
        print_header("Detailed Responses:")

    engine = LoadEngine(
        client=build_client(args.client, args.raise_for_status),
        timeout=args.timeout,
        on_outcome=print_live if args.live else None,
    )
    try:
        result = asyncio.run(engine.run(url, total_requests, time_window))
    except ConfigurationError as e:
        print_fail(f"Error running load test: {e}")
        return 1

    print()
    print(render_report(result, table=not args.no_table, details=not (args.no_details or args.live)))
    return 0


def run():
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("Interrupted by user.")
        sys.exit(130)


if __name__ == "__main__":
    run()
