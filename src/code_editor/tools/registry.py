"""Tool catalog and dispatcher.

The catalog is fixed at startup from whichever collaborators are
available; the dispatcher turns every outcome, including unknown tools and
malformed input, into a ToolResult so the conversation can continue.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import pydantic
from langchain_core.tools import StructuredTool

from ..errors import CodeEditorError, OperationCancelled, ToolNotFoundError, ValidationError
from ..logging_config import get_logger
from ..rag.embeddings import EmbeddingProvider
from ..rag.fallback import FallbackStore
from ..rag.vectorstore import VectorStore
from .edit import make_edit_tools
from .read import make_read_tools
from .sandbox import Sandbox
from .vector import VectorTools
from .web_search import WebSearchClient, make_web_search_tool

logger = get_logger(__name__)


class ToolName(str, Enum):
    READ_FILE = "read_file"
    LIST_FILES = "list_files"
    EDIT_FILE = "edit_file"
    CREATE_FILE = "create_file"
    SEARCH_WEB = "search_web"
    VECTOR_SEARCH = "vector_search"
    VECTOR_UPSERT = "vector_upsert"


@dataclass(frozen=True)
class ToolDefinition:
    name: ToolName
    description: str
    tool: StructuredTool

    @property
    def input_schema(self) -> dict:
        """JSON schema of the tool arguments, as sent to the model."""
        return self.tool.args_schema.model_json_schema()


@dataclass(frozen=True)
class ToolResult:
    tool_use_id: str
    content: str
    is_error: bool = False


def _definition(tool: StructuredTool) -> ToolDefinition:
    return ToolDefinition(name=ToolName(tool.name), description=tool.description, tool=tool)


class ToolRepository:
    """Read-only tool catalog plus the dispatcher that executes calls.

    File tools are always present. search_web needs a web-search client;
    vector_search and vector_upsert need both an embedding provider and a
    vector store.
    """

    def __init__(self, definitions: list[ToolDefinition]) -> None:
        self._definitions = {d.name: d for d in definitions}

    @classmethod
    def build(
        cls,
        sandbox: Sandbox,
        web_search: Optional[WebSearchClient] = None,
        embedder: Optional[EmbeddingProvider] = None,
        store: Optional[VectorStore] = None,
        vector_tools: Optional[VectorTools] = None,
    ) -> "ToolRepository":
        tools = make_read_tools(sandbox) + make_edit_tools(sandbox)
        if web_search is not None:
            tools.append(make_web_search_tool(web_search))
        if vector_tools is None and embedder is not None and store is not None:
            vector_tools = VectorTools(embedder, store, FallbackStore(sandbox.root))
        if vector_tools is not None:
            tools.extend(vector_tools.as_tools())

        repository = cls([_definition(t) for t in tools])
        logger.info("Tool catalog: %s", ", ".join(repository.names()))
        return repository

    def names(self) -> list[str]:
        return [name.value for name in self._definitions]

    def all_tools(self) -> list[ToolDefinition]:
        return list(self._definitions.values())

    def find(self, name: str) -> ToolDefinition:
        """Look up a tool by the name the model used.

        Raises:
            ToolNotFoundError: For names outside the catalog
        """
        try:
            return self._definitions[ToolName(name)]
        except (ValueError, KeyError):
            raise ToolNotFoundError(f"tool not found: {name}") from None

    @staticmethod
    def _parse_input(name: str, raw_input: str) -> dict:
        if not raw_input or not raw_input.strip():
            return {}
        try:
            args = json.loads(raw_input)
        except json.JSONDecodeError as e:
            raise ValidationError(f"invalid input format for {name}: {e}") from e
        if args is None:
            return {}
        if not isinstance(args, dict):
            raise ValidationError(f"invalid input format for {name}: expected a JSON object")
        return args

    def execute(self, tool_use_id: str, name: str, raw_input: str) -> ToolResult:
        """Run one tool call and capture the outcome.

        Never raises for tool failures: unknown names, malformed input and
        errors raised by the tool all become error-flagged results.
        Cancellation still propagates.
        """
        try:
            definition = self.find(name)
        except ToolNotFoundError:
            logger.warning("Model requested unknown tool %s", name)
            return ToolResult(tool_use_id, "tool not found", is_error=True)

        logger.info("tool: %s(%s)", name, raw_input)
        try:
            args = self._parse_input(name, raw_input)
            output = definition.tool.invoke(args)
        except OperationCancelled:
            raise
        except pydantic.ValidationError as e:
            error = ValidationError(f"invalid input format for {name}: {e}")
            return self._error(tool_use_id, name, error)
        except CodeEditorError as e:
            return self._error(tool_use_id, name, e)
        except Exception as e:
            logger.exception("Unexpected failure in tool %s", name)
            return self._error(tool_use_id, name, e)

        return ToolResult(tool_use_id, str(output), is_error=False)

    @staticmethod
    def _error(tool_use_id: str, name: str, error: Exception) -> ToolResult:
        logger.warning("Tool %s failed: %s", name, error)
        return ToolResult(tool_use_id, f"Error executing tool '{name}': {error}", is_error=True)
