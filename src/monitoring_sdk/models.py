"""
Response models of the monitoring API.
"""

from typing import Any
from typing import Literal

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field


class MetricSeries(BaseModel):
    """One time series: label set plus [timestamp, value] pairs."""

    metric: dict[str, str] = Field(default_factory=dict)
    values: list[tuple[float, str]] = Field(default_factory=list)


class MetricsData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result_type: str = Field(default="matrix", alias="resultType")
    result: list[MetricSeries] = Field(default_factory=list)


class MetricsResponse(BaseModel):
    status: str
    data: MetricsData

    @property
    def series(self) -> list[MetricSeries]:
        return self.data.result


class AlertPolicy(BaseModel):
    model_config = ConfigDict(extra="allow")

    uuid: str | None = None
    type: str
    description: str
    compare: Literal["GreaterThan", "LessThan"]
    value: float
    window: str
    entities: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    alerts: dict[str, Any] = Field(default_factory=dict)
    enabled: bool = True


class AlertPolicyList(BaseModel):
    policies: list[AlertPolicy] = Field(default_factory=list)
    links: dict[str, Any] = Field(default_factory=dict)
    meta: dict[str, Any] = Field(default_factory=dict)
