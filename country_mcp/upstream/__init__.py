"""REST Countries API client."""

from country_mcp.upstream.client import CountryDataClient, LookupResult

__all__ = ["CountryDataClient", "LookupResult"]
