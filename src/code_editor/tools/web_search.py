"""search_web tool backed by the Brave Search API."""

import json
import urllib.error
import urllib.request
from dataclasses import asdict, dataclass
from typing import Optional, Protocol
from urllib.parse import urlencode

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..errors import TransportError, ValidationError
from ..logging_config import get_logger

logger = get_logger(__name__)

BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"


@dataclass(frozen=True)
class WebResult:
    title: str
    url: str
    description: str


class WebSearchClient(Protocol):
    def search(self, query: str) -> list[WebResult]:
        ...


class BraveSearchClient:
    """Minimal Brave Search client over urllib."""

    def __init__(
        self,
        api_key: str,
        timeout: float = 15.0,
        base_url: str = BRAVE_SEARCH_URL,
    ) -> None:
        self.api_key = api_key
        self.timeout = timeout
        self.base_url = base_url

    def search(self, query: str) -> list[WebResult]:
        """Run a web search.

        Args:
            query: Search query

        Returns:
            Results in the order Brave ranks them

        Raises:
            TransportError: On network failure, a non-200 status or an unparseable body
        """
        req = urllib.request.Request(
            f"{self.base_url}?{urlencode({'q': query})}",
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": self.api_key,
            },
        )
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                body = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            detail = e.read().decode("utf-8", errors="replace")
            raise TransportError(f"API error (status code {e.code}): {detail}") from e
        except (urllib.error.URLError, OSError) as e:
            raise TransportError(f"failed to make API request: {e}") from e

        try:
            data = json.loads(body)
        except json.JSONDecodeError as e:
            raise TransportError(f"failed to parse response: {e}") from e

        results = (data.get("web") or {}).get("results") or []
        return [
            WebResult(
                title=r.get("title", ""),
                url=r.get("url", ""),
                description=r.get("description", ""),
            )
            for r in results
        ]


def create_web_search_client(api_key: Optional[str], timeout: float = 15.0) -> Optional[BraveSearchClient]:
    """Return a client when BRAVE_API_KEY is configured, else None (tool disabled)."""
    if not api_key:
        logger.info("BRAVE_API_KEY not set; search_web tool disabled")
        return None
    return BraveSearchClient(api_key=api_key, timeout=timeout)


class SearchWebInput(BaseModel):
    query: str = Field(description="The search query to execute.")


def search_web(client: WebSearchClient, query: str) -> str:
    if not query:
        raise ValidationError("query is required for search_web")
    logger.debug("search_web invoked: %s", query[:80])
    try:
        results = client.search(query)
    except TransportError as e:
        raise TransportError(f"Brave Search API error: {e}") from e
    logger.debug("search_web completed: %d results", len(results))
    return json.dumps([asdict(r) for r in results], indent=2)


def make_web_search_tool(client: WebSearchClient) -> StructuredTool:
    return StructuredTool.from_function(
        func=lambda query: search_web(client, query),
        name="search_web",
        description=(
            "Search the web using Brave Search API. Use this when you need to find "
            "information on the internet."
        ),
        args_schema=SearchWebInput,
    )
