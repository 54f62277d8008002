"""Read-only file tools: read_file and list_files."""

import json

from langchain_core.tools import StructuredTool
from pydantic import BaseModel, Field

from ..errors import ToolError, ValidationError
from .sandbox import Sandbox


class ReadFileInput(BaseModel):
    path: str = Field(description="The path of the file relative to the workspace directory.")


class ListFilesInput(BaseModel):
    path: str = Field(
        default=".",
        description="Optional path relative to the workspace root. Defaults to the workspace root if empty or '.'.",
    )


def read_file(sandbox: Sandbox, path: str) -> str:
    """Return the full text of a file inside the sandbox."""
    if not path:
        raise ValidationError("path is required for read_file")

    full_path = sandbox.resolve(path)
    if not full_path.exists():
        raise ToolError(f"file not found at path '{path}' within workspace")
    if full_path.is_dir():
        raise ToolError(f"path '{path}' is a directory, not a file")

    try:
        return full_path.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        raise ToolError(f"cannot read file '{path}' (not text)") from None
    except OSError as e:
        raise ToolError(f"failed to read file '{path}': {e}") from e


def list_files(sandbox: Sandbox, path: str = ".") -> str:
    """List one directory as a JSON array.

    Entries are prefixed with the requested path (``sub/a.py``), directories
    carry a trailing slash, and names are sorted.
    """
    path = path or "."
    full_path = sandbox.resolve(path)
    if not full_path.exists():
        raise ToolError(f"directory not found at path '{path}' within workspace")
    if not full_path.is_dir():
        raise ToolError(f"path '{path}' is not a directory")

    prefix = path.rstrip("/")
    results = []
    try:
        entries = sorted(full_path.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise ToolError(f"failed to read directory '{path}': {e}") from e

    for entry in entries:
        name = entry.name + ("/" if entry.is_dir() else "")
        results.append(name if prefix in ("", ".") else f"{prefix}/{name}")
    return json.dumps(results)


def make_read_tools(sandbox: Sandbox) -> list[StructuredTool]:
    return [
        StructuredTool.from_function(
            func=lambda path: read_file(sandbox, path),
            name="read_file",
            description=(
                "Read the contents of a file within the workspace directory. Provide the path "
                "relative to the workspace root (e.g., 'subdir/my_file.txt'). Do not use directory names."
            ),
            args_schema=ReadFileInput,
        ),
        StructuredTool.from_function(
            func=lambda path=".": list_files(sandbox, path),
            name="list_files",
            description=(
                "List files and directories within the workspace directory. Provide the path "
                "relative to the workspace root (e.g., 'subdir' or '.'). Defaults to the workspace "
                "root if no path is provided."
            ),
            args_schema=ListFilesInput,
        ),
    ]
