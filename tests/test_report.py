import re

from metrics import RequestOutcome, RunResult
from report import format_number, outcome_line, render_details, render_report, render_summary, render_table


def sample_result():
    outcomes = [
        RequestOutcome(2, 15, 200, True, 1024 * 1024, None, 1700000001.0),
        RequestOutcome(1, 25, "N/A", False, 0, "timeout of 10s exceeded", 1700000000.0),
    ]
    return RunResult(
        url="https://example.com",
        total_requests=2,
        time_window_seconds=5.0,
        rate_per_second=1,
        successful_requests=1,
        failed_requests=1,
        outcomes=outcomes,
        total_elapsed_ms=4000,
        first_start_timestamp=1700000000.0,
        last_start_timestamp=1700000001.0,
        total_response_size_bytes=1024 * 1024,
    )


def test_format_number():
    assert format_number(5.0) == "5"
    assert format_number(2.5) == "2.5"


def test_outcome_line():
    ok, failed = sample_result().outcomes
    assert outcome_line(ok) == "Request #2: Time: 15ms, Status=200, Success=true"
    assert outcome_line(failed) == (
        "Request #1: Time: 25ms, Status=N/A, Success=false, Error=timeout of 10s exceeded"
    )


def test_summary():
    text = render_summary(sample_result())
    lines = text.splitlines()
    assert lines[0] == "Load Test Summary:"
    assert "Total Requests Sent: 2" in lines
    assert "Time Window: 5 seconds" in lines
    assert "Successful Requests: 1" in lines
    assert "Failed Requests: 1" in lines
    assert "Error Rate: 50.00%" in lines
    assert "Average Response Time: 20.00 ms" in lines
    assert "Total Response Size: 1048576 bytes (1.00 MB)" in lines
    assert "Throughput: 0.25 MB/s" in lines
    assert "Total Time Taken: 4000 ms" in lines
    assert "Latency Percentiles: p50=25 ms, p90=25 ms, p95=25 ms, p99=25 ms" in lines
    stamp = r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}"
    assert re.search(rf"^First Request Started: {stamp}$", text, re.M)
    assert re.search(rf"^Last Request Started: {stamp}$", text, re.M)


def test_table():
    lines = render_table(sample_result().outcomes).splitlines()
    assert lines[0] == "Tabular Results:"
    assert lines[1].split(" | ")[0].strip() == "Request #"
    assert set(lines[2]) <= {"-", "+"}
    rows = [[cell.strip() for cell in line.split("|")] for line in lines[3:]]
    assert rows == [
        ["2", "15", "200", "true", "1048576"],
        ["1", "25", "N/A", "false", "0"],
    ]


def test_details():
    lines = render_details(sample_result().outcomes).splitlines()
    assert lines[0] == "Detailed Responses:"
    assert lines[1].startswith("Request #2:")
    assert lines[2].startswith("Request #1:")
    assert len(lines) == 3


def test_report_sections():
    full = render_report(sample_result())
    assert "Tabular Results:" in full
    assert "Detailed Responses:" in full

    summary_only = render_report(sample_result(), table=False, details=False)
    assert "Tabular Results:" not in summary_only
    assert "Detailed Responses:" not in summary_only
    assert summary_only.startswith("Load Test Summary:")
