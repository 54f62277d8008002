"""Declaration-level chunking of source files into snippets.

Parseable languages produce one snippet per top-level function or method,
sliced from the raw bytes so the snippet text is exactly what is on disk.
"""

import ast
import re
from pathlib import Path
from typing import Protocol

from .snippet import Snippet


class CodeParser(Protocol):
    """Turns one source file into declaration snippets."""

    def parse(self, file_path: str, source: bytes) -> list[Snippet]:
        ...


def _line_offsets(source: bytes) -> list[int]:
    """Byte offset at which each line starts (index 0 is line 1)."""
    offsets = [0]
    for i, b in enumerate(source):
        if b == 0x0A:
            offsets.append(i + 1)
    return offsets


def _line_at(offsets: list[int], byte_offset: int) -> int:
    """1-based line number containing byte_offset."""
    lo, hi = 0, len(offsets) - 1
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if offsets[mid] <= byte_offset:
            lo = mid
        else:
            hi = mid - 1
    return lo + 1


class PythonCodeParser:
    """Chunk Python modules with the stdlib ast module.

    Emits module-level functions and the methods of module-level classes
    (symbol ``Class.method``). Decorators belong to the declaration they
    decorate. Nested functions and classes stay inside their parent.
    """

    def parse(self, file_path: str, source: bytes) -> list[Snippet]:
        tree = ast.parse(source, filename=file_path)
        offsets = _line_offsets(source)
        snippets = []

        for node in tree.body:
            if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
                snippets.append(self._snippet(file_path, source, offsets, node, node.name))
            elif isinstance(node, ast.ClassDef):
                for member in node.body:
                    if isinstance(member, (ast.FunctionDef, ast.AsyncFunctionDef)):
                        symbol = f"{node.name}.{member.name}"
                        snippets.append(self._snippet(file_path, source, offsets, member, symbol))

        return snippets

    @staticmethod
    def _snippet(
        file_path: str,
        source: bytes,
        offsets: list[int],
        node: ast.FunctionDef | ast.AsyncFunctionDef,
        symbol: str,
    ) -> Snippet:
        first = node.decorator_list[0] if node.decorator_list else node
        # "@" sits in the same column as "def"
        start = offsets[first.lineno - 1] + node.col_offset
        end = offsets[node.end_lineno - 1] + node.end_col_offset
        return Snippet(
            content=source[start:end].decode("utf-8", errors="replace"),
            file_path=file_path,
            start_line=first.lineno,
            end_line=node.end_lineno,
            symbols=(symbol,),
        )


_GO_FUNC = re.compile(
    rb"^func[ \t]*(?:\([ \t]*(?:\w+[ \t]+)?\*?[ \t]*(\w+)(?:\[[^\]]*\])?[ \t]*\))?[ \t]*(\w+)",
    re.MULTILINE,
)
_GO_TYPE_LITERAL = re.compile(rb"(?:struct|interface)\s*$")


class GoCodeParser:
    """Chunk Go files by scanning for top-level ``func`` declarations.

    The body extent is found by brace matching that skips string, rune and
    raw-string literals as well as comments. Methods get the receiver type
    as a prefix (``Server.Start``).
    """

    def parse(self, file_path: str, source: bytes) -> list[Snippet]:
        offsets = _line_offsets(source)
        snippets = []

        # Walk the file so that func inside comments and raw strings is never matched
        i = 0
        while i < len(source):
            skipped = self._skip_literal(source, i)
            if skipped != i:
                i = skipped
                continue
            match = _GO_FUNC.match(source, i) if i == 0 or source[i - 1:i] == b"\n" else None
            if match is None:
                i += 1
                continue
            receiver, name = match.group(1), match.group(2)
            end = self._declaration_end(source, match.end())
            symbol = name.decode()
            if receiver:
                symbol = f"{receiver.decode()}.{symbol}"
            snippets.append(Snippet(
                content=source[match.start():end].decode("utf-8", errors="replace"),
                file_path=file_path,
                start_line=_line_at(offsets, match.start()),
                end_line=_line_at(offsets, max(match.start(), end - 1)),
                symbols=(symbol,),
            ))
            i = max(end, i + 1)

        return snippets

    @staticmethod
    def _skip_literal(source: bytes, i: int) -> int:
        """Return the index just past the literal or comment starting at i."""
        c = source[i:i + 1]
        if c == b"`":
            close = source.find(b"`", i + 1)
            return len(source) if close < 0 else close + 1
        if c in (b'"', b"'"):
            j = i + 1
            while j < len(source):
                if source[j:j + 1] == b"\\":
                    j += 2
                    continue
                if source[j:j + 1] == c or source[j:j + 1] == b"\n":
                    return j + 1
                j += 1
            return j
        if source[i:i + 2] == b"//":
            close = source.find(b"\n", i)
            return len(source) if close < 0 else close
        if source[i:i + 2] == b"/*":
            close = source.find(b"*/", i + 2)
            return len(source) if close < 0 else close + 2
        return i

    def _declaration_end(self, source: bytes, i: int) -> int:
        """Byte offset just past the declaration whose signature starts at i."""
        parens = 0
        depth = 0
        in_body = False
        while i < len(source):
            skipped = self._skip_literal(source, i)
            if skipped != i:
                i = skipped
                continue
            c = source[i:i + 1]
            if c == b"(":
                parens += 1
            elif c == b")":
                parens -= 1
            elif c == b"{":
                if depth == 0 and not in_body and _GO_TYPE_LITERAL.search(source[max(0, i - 16):i]):
                    # interface{} or struct{...} in the signature, not the body
                    i = self._matching_brace(source, i)
                    continue
                if parens == 0:
                    in_body = True
                depth += 1
            elif c == b"}":
                depth -= 1
                if in_body and depth == 0:
                    return i + 1
            elif c == b"\n" and parens == 0 and not in_body:
                # Declaration without a body (implemented in assembly)
                return i
            i += 1
        return len(source)

    def _matching_brace(self, source: bytes, i: int) -> int:
        depth = 0
        while i < len(source):
            skipped = self._skip_literal(source, i)
            if skipped != i:
                i = skipped
                continue
            c = source[i:i + 1]
            if c == b"{":
                depth += 1
            elif c == b"}":
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1
        return len(source)


PARSERS: dict[str, CodeParser] = {
    ".py": PythonCodeParser(),
    ".go": GoCodeParser(),
}


def parser_for(path: str | Path) -> CodeParser | None:
    """Return the declaration parser for a file, or None for whole-file indexing."""
    return PARSERS.get(Path(path).suffix.lower())
