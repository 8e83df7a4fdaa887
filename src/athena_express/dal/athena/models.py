"""Result payload models."""

from __future__ import annotations

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class QueryResult(BaseModel):
    """Decoded records of a finished query plus optional statistics."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[Union[dict[str, str], str]] = Field(
        default_factory=list, alias="Items", description="Decoded records (strings in raw mode)"
    )
    execution_id: str = Field(..., alias="QueryExecutionId")
    statement_type: str = Field("DML", alias="StatementType")
    data_scanned_in_mb: Optional[int] = Field(None, alias="DataScannedInMB")
    query_cost_in_usd: Optional[float] = Field(None, alias="QueryCostInUSD")
    engine_execution_time_in_millis: Optional[int] = Field(
        None, alias="EngineExecutionTimeInMillis"
    )
    count: Optional[int] = Field(None, alias="Count")

    def to_payload(self) -> dict[str, Any]:
        """Serialize with the wire field names, dropping statistics that were not requested."""
        return self.model_dump(by_alias=True, exclude_none=True)
