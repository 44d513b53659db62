"""The ``get_country_data`` tool: schema and handler."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Tuple

from mcp import types as mcp_types
from pydantic import BaseModel, Field

from country_mcp.upstream.client import CountryDataClient, LookupResult

logger = logging.getLogger(__name__)

TOOL_NAME = "get_country_data"
TOOL_TITLE = "Get Country Data"
TOOL_DESCRIPTION = (
    "Look up a country by name in the REST Countries API and return the "
    "first matching record, or an empty list when nothing matches."
)


class GetCountryDataInput(BaseModel):
    """Arguments accepted by ``get_country_data``."""

    countryName: str = Field(description="Country name")


class GetCountryDataOutput(BaseModel):
    """Structured result of ``get_country_data``."""

    data: Any = Field(description="First matching country record, or [] when there is none")


def country_tool() -> mcp_types.Tool:
    """Return the MCP tool declaration advertised in ``tools/list``."""
    return mcp_types.Tool(
        name=TOOL_NAME,
        title=TOOL_TITLE,
        description=TOOL_DESCRIPTION,
        inputSchema=GetCountryDataInput.model_json_schema(),
        outputSchema=GetCountryDataOutput.model_json_schema(),
    )


def result_data(result: LookupResult) -> Any:
    """Pick the tool's ``data`` value from a lookup result.

    A failed lookup and an empty match list both yield ``[]``.
    """
    first = result.first()
    return first if first is not None else []


async def get_country_data(
    client: CountryDataClient,
    arguments: Dict[str, Any],
) -> Tuple[List[mcp_types.TextContent], Dict[str, Any]]:
    """Run the tool and return ``(content, structured_content)``."""
    params = GetCountryDataInput.model_validate(arguments)
    logger.info("Tool '%s' called with countryName='%s'", TOOL_NAME, params.countryName)

    result = await client.lookup(params.countryName)
    if not result.ok:
        logger.info("Lookup for '%s' failed, returning empty data", params.countryName)

    output = GetCountryDataOutput(data=result_data(result))
    text = json.dumps(output.data, ensure_ascii=False)
    return [mcp_types.TextContent(type="text", text=text)], output.model_dump()
