"""
Plain-text rendering of a RunResult.

Templates live in templates/ next to this module:
 - summary.txt  totals, error rate, latency, size and throughput
 - table.txt    one row per request (completion order)
 - details.txt  one "Request #n: ..." line per request
"""

import os

from jinja2 import Environment, FileSystemLoader

from metrics import format_timestamp
from settings import PERCENTILES

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

TABLE_COLUMNS = ("Request #", "Time (ms)", "Status", "Success", "Size (bytes)")


def format_number(value):
    """5.0 -> '5', 2.5 -> '2.5'"""
    return f"{value:g}"


def outcome_line(outcome):
    line = (f"Request #{outcome.request_number}: "
            f"Time: {outcome.elapsed_ms}ms, "
            f"Status={outcome.status}, "
            f"Success={str(outcome.success).lower()}")
    if outcome.error:
        line += f", Error={outcome.error}"
    return line


# ---------- Templates ----------
env = Environment(loader=FileSystemLoader(TEMPLATE_DIR), trim_blocks=True, lstrip_blocks=True)
env.filters["number"] = format_number
env.filters["timestamp"] = format_timestamp
env.filters["outcome_line"] = outcome_line


def render_summary(result):
    percentiles = [f"p{p}={result.latency_percentile(p)} ms" for p in PERCENTILES]
    return env.get_template("summary.txt").render(result=result, percentiles=percentiles)


def table_rows(outcomes):
    return [
        (str(o.request_number), str(o.elapsed_ms), str(o.status), str(o.success).lower(), str(o.size_bytes))
        for o in outcomes
    ]


def render_table(outcomes):
    rows = table_rows(outcomes)
    widths = [max([len(col)] + [len(row[i]) for row in rows]) for i, col in enumerate(TABLE_COLUMNS)]

    def fmt(cells):
        return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(cells)).rstrip()

    return env.get_template("table.txt").render(
        header=fmt(TABLE_COLUMNS),
        separator="-+-".join("-" * w for w in widths),
        lines=[fmt(row) for row in rows],
    )


def render_details(outcomes):
    return env.get_template("details.txt").render(outcomes=outcomes)


def render_report(result, table=True, details=True):
    sections = [render_summary(result)]
    if table:
        sections.append(render_table(result.outcomes))
    if details:
        sections.append(render_details(result.outcomes))
    return "\n\n".join(section.rstrip("\n") for section in sections)
