"""Exception hierarchy shared by the agent, the tools and the indexing pipeline."""


class CodeEditorError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(CodeEditorError):
    """A required credential or collaborator is missing at startup."""


class TransportError(CodeEditorError):
    """An external call (LLM, embedding, vector store, web search) failed."""


class IndexingError(TransportError):
    """A committed indexing batch could not be embedded or upserted."""


class OperationCancelled(CodeEditorError):
    """The cancellation token was triggered while work was in progress."""


class ToolError(CodeEditorError):
    """Recoverable tool failure; surfaced to the model as an error result."""


class ValidationError(ToolError):
    """Malformed input: tool arguments, a sandbox path violation or a wrong-length embedding."""


class ToolNotFoundError(ToolError):
    """The model asked for a tool that is not in the catalog."""
