"""Tools the model can call: sandboxed file access, web search and vector memory."""

from .sandbox import Sandbox
from .read import read_file, list_files
from .edit import edit_file, create_file
from .web_search import BraveSearchClient, WebResult, WebSearchClient, create_web_search_client
from .vector import VectorTools
from .registry import ToolDefinition, ToolName, ToolRepository, ToolResult

__all__ = [
    "Sandbox",
    "read_file",
    "list_files",
    "edit_file",
    "create_file",
    "BraveSearchClient",
    "WebResult",
    "WebSearchClient",
    "create_web_search_client",
    "VectorTools",
    "ToolDefinition",
    "ToolName",
    "ToolRepository",
    "ToolResult",
]
