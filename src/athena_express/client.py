import logging
from typing import Any, Optional

from athena_express.config.settings import AthenaConfig
from athena_express.dal.athena.executor import AthenaAsyncQueryExecutor
from athena_express.dal.athena.models import QueryResult
from athena_express.dal.athena.query_runner import QueryInput, QueryRunner
from athena_express.dal.athena.result_store import S3ResultStore

logger = logging.getLogger(__name__)


class AthenaExpress:
    """Run SQL on Athena and get decoded result records back."""

    def __init__(
        self,
        config: AthenaConfig,
        athena_client: Any = None,
        s3_client: Any = None,
    ) -> None:
        """Validate the config and wire executor, result store, and runner.

        boto3 clients are built from ``config.region`` unless injected.
        """
        if config is None:
            raise ValueError("Config object not present in the constructor")
        config.validate()
        self._config = config
        self._executor = AthenaAsyncQueryExecutor(
            region=config.region,
            database=config.database,
            output_location=config.output_location,
            workgroup=config.workgroup,
            retry_policy=config.retry_policy,
            client=athena_client,
        )
        self._runner = QueryRunner(
            config=config,
            executor=self._executor,
            result_store=S3ResultStore(region=config.region, client=s3_client),
        )
        logger.debug(
            "AthenaExpress ready (region=%s, database=%s, workgroup=%s).",
            config.region,
            config.database,
            config.workgroup,
        )

    @classmethod
    def from_env(cls) -> "AthenaExpress":
        return cls(AthenaConfig.from_env())

    @property
    def config(self) -> AthenaConfig:
        return self._config

    async def query(self, query: Optional[QueryInput]) -> QueryResult:
        """Run ``query`` (SQL string, ``{"sql", "db"}`` mapping, or QueryRequest)."""
        return await self._runner.run(query)
