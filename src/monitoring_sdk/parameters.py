"""
Reusable parameter definitions of the monitoring API.

Each entry of `PARAMETERS` is an independent OpenAPI parameter object that
operations reference by catalog name (e.g. 'droplet_id'). The client uses them
to place values in the path or the query string and to reject values that do
not satisfy the definition before any request is made.
"""

from datetime import datetime
from typing import Any
from typing import Iterable
from typing import Literal
from typing import Mapping

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from monitoring_sdk.exceptions import ParameterValidationError


class ParameterSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["string"] = "string"
    enum: tuple[str, ...] | None = None


class ParameterObject(BaseModel):
    """
    An OpenAPI parameter object.

    Attributes:
        location (str): 'query' or 'path' (serialized as 'in')
        name (str): Wire name of the parameter
        description (str): Human readable description
        required (bool): Whether the operation needs a value
        example (str | None): Example value
        schema_ (ParameterSchema): Value schema (serialized as 'schema')
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    location: Literal["query", "path"] = Field(alias="in")
    name: str
    description: str = ""
    required: bool = False
    example: str | None = None
    schema_: ParameterSchema = Field(default_factory=ParameterSchema, alias="schema")

    def coerce(self, value: Any) -> str:
        """
        Convert a value to its wire representation and check it against the schema.

        Datetimes become UNIX timestamps, everything else is stringified.

        Raises:
            ParameterValidationError: If the value is empty or outside the enum
        """
        if isinstance(value, datetime):
            value = int(value.timestamp())
        text = str(value)
        if not text:
            raise ParameterValidationError(f"Parameter '{self.name}' must not be empty")
        enum = self.schema_.enum
        if enum is not None and text not in enum:
            raise ParameterValidationError(
                f"Invalid value '{text}' for parameter '{self.name}', expected one of: {', '.join(enum)}",
                details={"parameter": self.name, "allowed": list(enum)},
            )
        return text

    def to_openapi(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


def _param(**kwargs: Any) -> ParameterObject:
    return ParameterObject.model_validate(kwargs)


PARAMETERS: dict[str, ParameterObject] = {
    "droplet_id": _param(
        **{"in": "query"},
        name="host_id",
        description="The droplet ID.",
        example="17209102",
        required=True,
    ),
    "app_id": _param(
        **{"in": "query"},
        name="app_id",
        description="The app UUID.",
        example="2db3c021-15ad-4088-bfe8-99dc972b9cf6",
        required=True,
    ),
    "app_component": _param(
        **{"in": "query"},
        name="app_component",
        description="The app component name.",
        example="sample-application",
        required=False,
    ),
    "network_interface": _param(
        **{"in": "query"},
        name="interface",
        description="The network interface.",
        example="private",
        required=True,
        schema={"type": "string", "enum": ["private", "public"]},
    ),
    "network_direction": _param(
        **{"in": "query"},
        name="direction",
        description="The traffic direction.",
        example="inbound",
        required=True,
        schema={"type": "string", "enum": ["inbound", "outbound"]},
    ),
    "metric_timestamp_start": _param(
        **{"in": "query"},
        name="start",
        description="Timestamp to start metric window.",
        example="1620683817",
        required=True,
    ),
    "metric_timestamp_end": _param(
        **{"in": "query"},
        name="end",
        description="Timestamp to end metric window.",
        example="1620705417",
        required=True,
    ),
    "alert_uuid": _param(
        **{"in": "path"},
        name="alert_uuid",
        description="A unique identifier for an alert policy.",
        example="4de7ac8b-495b-4884-9a69-1050c6793cd6",
        required=True,
    ),
}


def resolve_parameters(
    refs: Iterable[str], values: Mapping[str, Any]
) -> tuple[dict[str, str], dict[str, str]]:
    """
    Split values into path and query parameters according to the catalog.

    Args:
        refs: Catalog names of the parameters an operation accepts
        values: Values keyed by wire name; None means "not given"

    Returns:
        tuple: (path_params, query_params)

    Raises:
        KeyError: If a ref is not in the catalog
        ParameterValidationError: If a required value is missing or invalid
    """
    path: dict[str, str] = {}
    query: dict[str, str] = {}
    for ref in refs:
        param = PARAMETERS[ref]
        value = values.get(param.name)
        if value is None:
            if param.required:
                raise ParameterValidationError(
                    f"Missing required parameter '{param.name}'",
                    details={"parameter": param.name},
                )
            continue
        target = path if param.location == "path" else query
        target[param.name] = param.coerce(value)
    return path, query


def catalog_as_openapi() -> dict[str, dict[str, Any]]:
    """Render the whole catalog as an OpenAPI `components.parameters` mapping."""
    return {key: param.to_openapi() for key, param in PARAMETERS.items()}
