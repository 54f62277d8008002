"""Indexed code snippets and their embeddings."""

import uuid
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence


@dataclass(frozen=True)
class Embedding:
    """Fixed-length vector produced by an embedding provider.

    Values are stored as a tuple so the embedding cannot be mutated after
    creation.
    """

    values: tuple[float, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", tuple(float(v) for v in self.values))

    @classmethod
    def of(cls, values: Sequence[float]) -> "Embedding":
        return cls(tuple(values))

    @property
    def dimension(self) -> int:
        return len(self.values)

    def __len__(self) -> int:
        return len(self.values)

    def to_list(self) -> list[float]:
        return list(self.values)


def new_snippet_id() -> str:
    return str(uuid.uuid4())


@dataclass(frozen=True)
class Snippet:
    """An indexed unit of source content.

    Attributes:
        id: Opaque unique identifier (UUID4 string)
        content: Source text
        file_path: Path of the source file, relative to the indexed root
        start_line: First line (1-based, inclusive)
        end_line: Last line (1-based, inclusive)
        symbols: Declared symbol names, possibly empty
        embedding: Attached once the pipeline has embedded the snippet
        metadata: Free-form string metadata (file_type, truncated, ...)
    """

    content: str
    file_path: str
    start_line: int = 0
    end_line: int = 0
    symbols: tuple[str, ...] = ()
    embedding: Optional[Embedding] = None
    metadata: dict[str, str] = field(default_factory=dict)
    id: str = field(default_factory=new_snippet_id)

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbols", tuple(self.symbols))
        if self.start_line > 0 and self.end_line > 0 and self.start_line > self.end_line:
            raise ValueError(
                f"start_line {self.start_line} is after end_line {self.end_line} in {self.file_path}"
            )

    def with_embedding(self, embedding: Embedding) -> "Snippet":
        """Return a copy of this snippet carrying the given embedding."""
        return replace(self, embedding=embedding)

    def embedding_text(self) -> str:
        """Text sent to the embedding provider for this snippet."""
        header = f"File: {self.file_path}\n"
        if self.symbols:
            header += f"Symbols: {', '.join(self.symbols)}\n"
        return header + self.content

    def to_dict(self) -> dict:
        """Serialisable form used by the vector_search tool."""
        return {
            "id": self.id,
            "content": self.content,
            "file_path": self.file_path,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "symbols": list(self.symbols),
            "metadata": dict(self.metadata),
        }
