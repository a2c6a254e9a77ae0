"""
Utility functions for the Cosmos DB management report.

Logging Level Standards:
------------------------
- ERROR: Failures that end the run
         "Failed to list database accounts: {e}"
- WARNING: Retried calls, loose settings file permissions
- INFO: Progress messages and counts
        "Found 12 resource groups"
- DEBUG: Per-group details
        "Listed 2 database accounts in rg-data"
"""
import hashlib
import json
import logging
import os
import re
import sys
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from azure.core.exceptions import (
    ClientAuthenticationError,
    HttpResponseError,
    ServiceRequestError,
)
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
)
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .constants import (
    DEFAULT_RETRY_ATTEMPTS,
    RETRY_MAX_WAIT,
    RETRY_MIN_WAIT,
    TRANSIENT_STATUS_CODES,
)

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])
T = TypeVar('T')


# =============================================================================
# Error Classification
# =============================================================================

class AuthError(Exception):
    """Authentication/authorization failure reported by Azure.

    Raised in place of the SDK exception so the entry point can tell the
    user to check the service principal rather than print a bare traceback.
    """
    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


AZURE_AUTH_STATUS_CODES = {401, 403}


def is_auth_error(exc: Exception) -> bool:
    """
    Check if an exception represents an authentication/authorization error.

    ClientAuthenticationError is always an auth error. Any other
    HttpResponseError counts when it carries a 401/403 status or its
    message mentions authentication/authorization.
    """
    if isinstance(exc, ClientAuthenticationError):
        return True

    if isinstance(exc, HttpResponseError):
        if getattr(exc, 'status_code', None) in AZURE_AUTH_STATUS_CODES:
            return True
        error_msg = str(exc).lower()
        return 'authenticationfailed' in error_msg or 'authorizationfailed' in error_msg

    return False


def is_transient_error(exc: BaseException) -> bool:
    """True for connection failures, throttling and 5xx responses."""
    if isinstance(exc, ServiceRequestError):
        return True
    if isinstance(exc, HttpResponseError) and not is_auth_error(exc):
        return getattr(exc, 'status_code', None) in TRANSIENT_STATUS_CODES
    return False


def check_and_raise_auth_error(exc: Exception, context: str) -> None:
    """
    Raise AuthError if exc is an authentication/authorization error.

    Call this in exception handlers before re-raising. Non-auth errors are
    left to the caller.

    Args:
        exc: The caught exception
        context: Description of what was being attempted (e.g., "get subscription")

    Raises:
        AuthError: If exc is an authentication/authorization error
    """
    if is_auth_error(exc):
        raise AuthError(
            f"Authentication/authorization error while trying to {context}: {exc}",
            original_error=exc
        ) from exc


# =============================================================================
# Retry
# =============================================================================

def retry_with_backoff(
    max_attempts: int = DEFAULT_RETRY_ATTEMPTS,
    min_wait: float = RETRY_MIN_WAIT,
    max_wait: float = RETRY_MAX_WAIT,
    should_retry: Callable[[BaseException], bool] = is_transient_error
) -> Callable[[F], F]:
    """
    Decorator for retrying functions with exponential backoff.

    The default of a single attempt means no retry at all; callers opt in
    by raising max_attempts. The last exception is always re-raised.

    Args:
        max_attempts: Maximum number of attempts (default: 1)
        min_wait: Minimum wait time between retries in seconds
        max_wait: Maximum wait time between retries in seconds
        should_retry: Predicate deciding whether an exception is retried

    Example:
        @retry_with_backoff(max_attempts=5)
        def call_api():
            ...
    """
    def decorator(func: F) -> F:
        return retry(
            stop=stop_after_attempt(max(1, max_attempts)),
            wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
            retry=retry_if_exception(should_retry),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )(func)
    return decorator


# =============================================================================
# Progress Tracking
# =============================================================================

class ProgressTracker:
    """
    Progress bar on stderr for the per-resource-group listing.

    Only shown when stderr is a TTY so the report on stdout stays clean
    when piped; otherwise progress goes to the debug log.

    Usage:
        with ProgressTracker("Listing database accounts", total=len(groups)) as tracker:
            for group in groups:
                ...
                tracker.advance(group.name)
    """

    def __init__(self, description: str, total: int = 0, show_progress: bool = True):
        self.description = description
        self.total = total
        self.completed = 0
        self._use_rich = show_progress and sys.stderr.isatty()
        self._progress: Optional[Progress] = None
        self._task = None

    def __enter__(self):
        if self._use_rich:
            self._progress = Progress(
                SpinnerColumn(),
                TextColumn("[bold blue]{task.description}"),
                BarColumn(),
                MofNCompleteColumn(),
                TimeElapsedColumn(),
                console=Console(stderr=True),
                transient=True,
            )
            self._task = self._progress.add_task(self.description, total=self.total or 1)
            self._progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self._progress is not None:
            self._progress.stop()
        return False

    def advance(self, item: str = ""):
        """Mark one item as done."""
        self.completed += 1
        if self._progress is not None:
            self._progress.update(self._task, advance=1, description=f"{self.description} [{item}]")
        else:
            logger.debug(f"{self.description}: {self.completed}/{self.total} {item}")


# =============================================================================
# Fan-out
# =============================================================================

def ordered_parallel_map(
    func: Callable[[Any], T],
    items: Sequence[Any],
    parallel_workers: int = 1,
    on_done: Optional[Callable[[Any], None]] = None
) -> List[T]:
    """
    Apply func to every item, serially or on a thread pool.

    Results are returned in the order of items regardless of completion
    order. The first exception raised by func propagates and pending work
    is cancelled.

    Args:
        func: Function called once per item
        items: Items to process
        parallel_workers: Number of threads (1 = serial, >1 = parallel)
        on_done: Optional callback invoked with each finished item
    """
    if parallel_workers <= 1 or len(items) <= 1:
        results = []
        for item in items:
            results.append(func(item))
            if on_done:
                on_done(item)
        return results

    logger.info(f"Using parallel listing with {parallel_workers} threads")
    ordered: List[Any] = [None] * len(items)

    with ThreadPoolExecutor(max_workers=parallel_workers) as executor:
        futures = {executor.submit(func, item): index for index, item in enumerate(items)}
        try:
            for future in as_completed(futures):
                index = futures[future]
                ordered[index] = future.result()
                if on_done:
                    on_done(items[index])
        except BaseException:
            for future in futures:
                future.cancel()
            raise

    return ordered


# =============================================================================
# Log Redaction
# =============================================================================

def hash_sensitive_id(value: str, prefix: str = "") -> str:
    """
    Hash a sensitive ID using consistent hashing.

    Uses first 8 chars of SHA256 so the same ID always maps to the same
    token within and across log files.
    """
    if not value:
        return value
    hash_val = hashlib.sha256(value.encode()).hexdigest()[:8]
    return f"{prefix}{hash_val}" if prefix else hash_val


_LOG_REDACT_PATTERNS = [
    # Subscription + resource group paths; must come before the GUID pattern
    (re.compile(r'(/subscriptions/)([0-9a-f-]{36})(/resourceGroups/)([^/\s]+)', re.IGNORECASE),
     lambda m: f"{m.group(1)}{hash_sensitive_id(m.group(2).lower())}{m.group(3)}{hash_sensitive_id(m.group(4))}"),
    (re.compile(r'(/subscriptions/)([0-9a-f-]{36})', re.IGNORECASE),
     lambda m: f"{m.group(1)}{hash_sensitive_id(m.group(2).lower())}"),
    # Tenant, client and subscription GUIDs
    (re.compile(r'\b([0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12})\b', re.IGNORECASE),
     lambda m: f"id-{hash_sensitive_id(m.group(1).lower())}"),
]


def redact_log_message(message: str) -> str:
    """Replace tenant/subscription identifiers in a log message with hashes."""
    if not message:
        return message

    for pattern, replacer in _LOG_REDACT_PATTERNS:
        message = pattern.sub(replacer, message)

    return message


class RedactingFilter(logging.Filter):
    """
    Logging filter that redacts identifiers from persisted log records.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = redact_log_message(str(record.msg))
        if record.args:
            record.args = tuple(
                redact_log_message(arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


# =============================================================================
# Logging / Output
# =============================================================================

def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Setup logging configuration with console and optional file output.

    Console logs go to stderr so stdout carries only the report.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: If provided, also write redacted logs to this file
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode='w')
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(RedactingFilter())
        root_logger.addHandler(file_handler)
        root_logger.info(f"Logging to: {log_file}")

    # The SDK logs every request/response header at INFO
    logging.getLogger('azure.core.pipeline.policies.http_logging_policy').setLevel(logging.WARNING)
    logging.getLogger('azure.identity').setLevel(logging.WARNING)

    return logging.getLogger(__name__)


def generate_run_id() -> str:
    """Generate a unique run ID."""
    return f"{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}-{str(uuid.uuid4())[:8]}"


def get_timestamp() -> str:
    """Get current UTC timestamp in ISO format."""
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def write_json(data: Any, filepath: str) -> None:
    """Write data to JSON file with secure permissions."""
    # Owner read/write only; the report names every subscription resource
    fd = os.open(filepath, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, 'w') as f:
        json.dump(data, f, indent=2, default=str)
    logger.info(f"Wrote {filepath}")
