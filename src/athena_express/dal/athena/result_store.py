import logging
from typing import Any, Iterator, Tuple
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


def parse_s3_uri(location: str) -> Tuple[str, str]:
    """Split ``s3://bucket/key`` into ``(bucket, key)``."""
    parsed = urlparse(location)
    if parsed.scheme != "s3" or not parsed.netloc or not parsed.path.lstrip("/"):
        raise ValueError(f"Invalid S3 result location: '{location}'.")
    return parsed.netloc, parsed.path.lstrip("/")


class S3ResultStore:
    """Opens Athena result objects in S3 as line iterators."""

    def __init__(self, region: str, client: Any = None) -> None:
        if client is None:
            import boto3

            client = boto3.client("s3", region_name=region)
        self._client = client

    def iter_lines(self, location: str) -> Iterator[bytes]:
        """Stream the object at ``location`` line by line.

        Blocking; callers on the event loop run it via ``asyncio.to_thread``.
        """
        bucket, key = parse_s3_uri(location)
        logger.debug("Reading Athena results from s3://%s/%s", bucket, key)
        body = self._client.get_object(Bucket=bucket, Key=key)["Body"]
        try:
            iter_lines = getattr(body, "iter_lines", None)
            if callable(iter_lines):
                yield from iter_lines()
            else:
                yield from body
        finally:
            close = getattr(body, "close", None)
            if callable(close):
                close()
