from dataclasses import dataclass, field
from typing import Optional

from athena_express.config.env import get_env_bool, get_env_float, get_env_int, get_env_str

DEFAULT_DATABASE = "default"
DEFAULT_POLL_INTERVAL_MS = 200
DEFAULT_TRANSIENT_RETRY_DELAY_MS = 2000
DEFAULT_NO_PROGRESS_THRESHOLD = 3
DEFAULT_MAX_RESUBMISSIONS = 2
DEFAULT_MAX_SUBMIT_RETRIES = 10
UNBOUNDED_SUBMIT_RETRIES = frozenset({"none", "unbounded", "-1"})


@dataclass(frozen=True)
class RetryPolicy:
    """Retry and stuck-execution recovery thresholds for one query run."""

    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_MS / 1000
    transient_retry_delay_seconds: float = DEFAULT_TRANSIENT_RETRY_DELAY_MS / 1000
    no_progress_threshold: int = DEFAULT_NO_PROGRESS_THRESHOLD
    max_resubmissions: int = DEFAULT_MAX_RESUBMISSIONS
    # None keeps retrying transient submission errors forever.
    max_submit_retries: Optional[int] = DEFAULT_MAX_SUBMIT_RETRIES

    def validate(self) -> None:
        """Raise ValueError when a threshold is out of range."""
        if self.poll_interval_seconds <= 0:
            raise ValueError("Poll interval must be greater than zero.")
        if self.transient_retry_delay_seconds < 0:
            raise ValueError("Transient retry delay must be non-negative.")
        if self.no_progress_threshold < 0:
            raise ValueError("No-progress threshold must be non-negative.")
        if self.max_resubmissions < 0:
            raise ValueError("Maximum resubmissions must be non-negative.")
        if self.max_submit_retries is not None and self.max_submit_retries < 0:
            raise ValueError("Maximum submit retries must be non-negative.")


@dataclass(frozen=True)
class AthenaConfig:
    """Configuration required for Athena query execution and S3 result retrieval."""

    region: str
    database: str = DEFAULT_DATABASE
    output_location: Optional[str] = None
    workgroup: Optional[str] = None
    format_json: bool = True
    get_stats: bool = False
    query_timeout_seconds: Optional[float] = None
    retry_policy: RetryPolicy = field(default_factory=RetryPolicy)

    def validate(self) -> None:
        """Validate constructor-level options before any client is built."""
        if not self.region or not self.region.strip():
            raise ValueError("Athena config requires a non-empty region.")
        if not self.database or not self.database.strip():
            raise ValueError("Athena config requires a non-empty database.")
        if self.output_location is not None and not self.output_location.startswith("s3://"):
            raise ValueError(
                f"Athena output location must be an s3:// URI, got '{self.output_location}'."
            )
        if self.query_timeout_seconds is not None and self.query_timeout_seconds <= 0:
            raise ValueError("Query timeout must be greater than zero when set.")
        self.retry_policy.validate()

    @classmethod
    def from_env(cls) -> "AthenaConfig":
        """Load Athena config from environment variables."""
        region = get_env_str("AWS_REGION") or get_env_str("AWS_DEFAULT_REGION")
        if not region:
            raise ValueError(
                "Athena config missing required region. Set AWS_REGION or AWS_DEFAULT_REGION."
            )

        retry_policy = RetryPolicy(
            poll_interval_seconds=get_env_int("ATHENA_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS)
            / 1000,
            transient_retry_delay_seconds=get_env_int(
                "ATHENA_TRANSIENT_RETRY_DELAY_MS", DEFAULT_TRANSIENT_RETRY_DELAY_MS
            )
            / 1000,
            no_progress_threshold=get_env_int(
                "ATHENA_NO_PROGRESS_THRESHOLD", DEFAULT_NO_PROGRESS_THRESHOLD
            ),
            max_resubmissions=get_env_int("ATHENA_MAX_RESUBMISSIONS", DEFAULT_MAX_RESUBMISSIONS),
            max_submit_retries=_max_submit_retries_from_env(),
        )

        config = cls(
            region=region,
            database=get_env_str("ATHENA_DATABASE") or DEFAULT_DATABASE,
            output_location=get_env_str("ATHENA_OUTPUT_LOCATION") or None,
            workgroup=get_env_str("ATHENA_WORKGROUP") or None,
            format_json=get_env_bool("ATHENA_FORMAT_JSON", True),
            get_stats=get_env_bool("ATHENA_GET_STATS", False),
            query_timeout_seconds=get_env_float("ATHENA_QUERY_TIMEOUT_SECONDS"),
            retry_policy=retry_policy,
        )
        config.validate()
        return config


def _max_submit_retries_from_env() -> Optional[int]:
    raw = get_env_str("ATHENA_MAX_SUBMIT_RETRIES")
    if raw is not None and raw.strip().lower() in UNBOUNDED_SUBMIT_RETRIES:
        return None
    return get_env_int("ATHENA_MAX_SUBMIT_RETRIES", DEFAULT_MAX_SUBMIT_RETRIES)
