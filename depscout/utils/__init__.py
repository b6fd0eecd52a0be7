"""
Support code shared by depscout's core and commands.

- :mod:`~depscout.utils.version_utils`: cleaning, coercing and classifying
  declared versions.
- :mod:`~depscout.utils.http` and :mod:`~depscout.utils.retry`: the registry
  transport and its backoff policy.
- :mod:`~depscout.utils.filesystem`: newline-preserving reads and atomic
  manifest writes.
- :mod:`~depscout.utils.logger` and :mod:`~depscout.utils.console`:
  diagnostics and user-facing output.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Versions
# ---------------------------------------------------------------------------

from depscout.utils.version_utils import (
    clean_version,
    coerce_version,
    compare_versions,
    get_change_type,
    get_version_prefix,
    should_update_version,
)

# ---------------------------------------------------------------------------
# Registry transport
# ---------------------------------------------------------------------------

from depscout.utils.http import HTTPClient
from depscout.utils.retry import RetryPolicy, is_retryable_error, retry_with_backoff

# ---------------------------------------------------------------------------
# Manifest files
# ---------------------------------------------------------------------------

from depscout.utils.filesystem import safe_read_file, safe_write_file

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

from depscout.utils.logger import get_logger, setup_logging
from depscout.utils.console import (
    print_error,
    print_success,
    print_table,
    print_warning,
    reconfigure_console,
)

__all__ = [
    "clean_version",
    "coerce_version",
    "compare_versions",
    "get_change_type",
    "get_version_prefix",
    "should_update_version",
    "HTTPClient",
    "RetryPolicy",
    "is_retryable_error",
    "retry_with_backoff",
    "safe_read_file",
    "safe_write_file",
    "get_logger",
    "setup_logging",
    "print_error",
    "print_success",
    "print_table",
    "print_warning",
    "reconfigure_console",
]
