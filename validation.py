"""Input checks shared by the CLI and the load engine."""

import math
import re

URL_PATTERN = re.compile(r"^https?://.+")


class ConfigurationError(ValueError):
    """Raised when a run is rejected before any request is sent."""


def validate_url(url):
    if not url or not isinstance(url, str) or not URL_PATTERN.match(url):
        raise ConfigurationError(
            "Invalid or missing URL. Please provide a valid URL starting with http:// or https://"
        )


def validate_total_requests(total_requests):
    # bool is an int subclass; True is not a request count
    if isinstance(total_requests, bool) or not isinstance(total_requests, int) or total_requests <= 0:
        raise ConfigurationError("Invalid totalRequests. Please provide a positive integer.")


def validate_time_window(time_window_seconds):
    if isinstance(time_window_seconds, bool) or not isinstance(time_window_seconds, (int, float)):
        raise ConfigurationError("Invalid timeWindowSeconds. Please provide a positive number.")
    if not math.isfinite(time_window_seconds) or time_window_seconds <= 0:
        raise ConfigurationError("Invalid timeWindowSeconds. Please provide a positive number.")


def requests_per_second(total_requests, time_window_seconds):
    """ceil(total / window), or ConfigurationError when it does not fit a float."""
    try:
        return math.ceil(total_requests / time_window_seconds)
    except OverflowError:
        raise ConfigurationError(
            "Invalid timeWindowSeconds. Requests per second is too large to schedule."
        ) from None


def validate_inputs(url, total_requests, time_window_seconds):
    """Reject anything that cannot describe a load test run."""
    validate_url(url)
    validate_total_requests(total_requests)
    validate_time_window(time_window_seconds)
    requests_per_second(total_requests, time_window_seconds)


def parse_total_requests(text):
    """Parse prompt/flag text into a request count (validated)."""
    try:
        value = int(str(text).strip())
    except ValueError:
        raise ConfigurationError("Invalid totalRequests. Please provide a positive integer.") from None
    validate_total_requests(value)
    return value


def parse_time_window(text):
    """Parse prompt/flag text into a window in seconds (validated)."""
    try:
        value = float(str(text).strip())
    except ValueError:
        raise ConfigurationError("Invalid timeWindowSeconds. Please provide a positive number.") from None
    validate_time_window(value)
    return value
