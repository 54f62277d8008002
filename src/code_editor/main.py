#!/usr/bin/env python3
"""CLI entry point: interactive coding agent, or one-shot indexing with --index."""

import argparse
import os
import signal
import sys
import threading
from typing import Optional

from .agent import Agent
from .cancellation import CancellationToken
from .config import Settings, load_env_files, load_settings
from .errors import CodeEditorError, ConfigurationError, OperationCancelled
from .llm import ChatModelClient, create_chat_model
from .logging_config import get_logger, setup_logging
from .rag.embeddings import EmbeddingProvider, create_embedding_provider
from .rag.fallback import FallbackStore
from .rag.indexer import IndexingPipeline
from .rag.retriever import ContextRetriever
from .rag.vectorstore import ChromaVectorStore
from .tools.registry import ToolRepository
from .tools.sandbox import Sandbox
from .tools.vector import VectorTools
from .tools.web_search import create_web_search_client
from .ui.console import ConsoleUI

logger = get_logger(__name__)

# Grace period between an interrupt and a forced exit
HARD_EXIT_SECONDS = 0.5

# Module-level so the signal handler can raise and we can restore in finally
_previous_signal_handlers: dict[int, object] = {}


def _make_termination_handler(token: CancellationToken, ui: Optional[ConsoleUI] = None):
    """SIGINT/SIGTERM handler: cancel work, arm the hard-exit timer, unwind the main thread."""

    def handler(signum: int, frame: object) -> None:
        logger.info("Received signal %s; shutting down gracefully.", signum)
        if ui is not None:
            ui.show_interrupted()
        token.cancel()
        timer = threading.Timer(HARD_EXIT_SECONDS, os._exit, args=(0,))
        timer.daemon = True
        timer.start()
        raise KeyboardInterrupt()

    return handler


def _install_signal_handlers(token: CancellationToken, ui: Optional[ConsoleUI] = None) -> None:
    """Install SIGINT and SIGTERM handlers; save previous handlers for restore."""
    _previous_signal_handlers.clear()
    handler = _make_termination_handler(token, ui)
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            _previous_signal_handlers[sig] = signal.signal(sig, handler)
        except (ValueError, OSError):
            pass  # not on the main thread, or SIGTERM unavailable on this platform


def _restore_signal_handlers() -> None:
    """Restore previous signal handlers so we don't affect callers (e.g. pytest)."""
    for sig, old in _previous_signal_handlers.items():
        try:
            signal.signal(sig, old)
        except (ValueError, OSError):
            pass
    _previous_signal_handlers.clear()


def _open_vector_store(settings: Settings, embedder: EmbeddingProvider) -> ChromaVectorStore:
    return ChromaVectorStore(
        persist_dir=settings.index_dir,
        collection_name=settings.collection_name,
        dimension=embedder.dimension,
    )


def run_index(settings: Settings, token: CancellationToken) -> int:
    """Index the workspace directory once.

    Raises:
        ConfigurationError: No embedding provider is available
        TransportError: The vector store could not be opened
        IndexingError: A batch failed to embed or upsert
    """
    embedder = create_embedding_provider(settings.embedding, timeout=settings.embed_timeout)
    if embedder is None:
        raise ConfigurationError(
            "Cannot perform indexing without an embedding provider (OPENAI_API_KEY missing?)"
        )
    store = _open_vector_store(settings, embedder)

    settings.workspace_dir.mkdir(parents=True, exist_ok=True)
    pipeline = IndexingPipeline.from_settings(settings, embedder, store)
    stats = pipeline.index_directory(settings.workspace_dir, token)

    logger.info(
        "Indexing complete: %d snippets from %d of %d files (%d skipped, %d failed)",
        stats.snippets,
        stats.files_indexed,
        stats.files_seen,
        len(stats.skipped),
        len(stats.failed),
    )
    return 0


def build_agent(settings: Settings, token: CancellationToken, ui: ConsoleUI) -> Agent:
    """Wire the agent from configuration; optional collaborators are skipped when unconfigured.

    Raises:
        ConfigurationError: No usable LLM credentials
        TransportError: The vector store could not be opened
    """
    llm = ChatModelClient(create_chat_model(settings.llm))
    sandbox = Sandbox(settings.workspace_dir)

    embedder = create_embedding_provider(settings.embedding, timeout=settings.embed_timeout)
    store = None
    retriever = None
    vector_tools = None
    if embedder is not None:
        store = _open_vector_store(settings, embedder)
        retriever = ContextRetriever(
            embedder,
            store,
            k=settings.top_k,
            max_chars=settings.max_context_chars,
            embed_timeout=settings.embed_timeout,
            query_timeout=settings.query_timeout,
        )
        vector_tools = VectorTools(
            embedder,
            store,
            FallbackStore(sandbox.root),
            embed_timeout=settings.embed_timeout,
            query_timeout=settings.query_timeout,
            upsert_timeout=settings.upsert_timeout,
            token=token,
        )
    else:
        logger.warning("Context retrieval via embeddings is disabled")

    tools = ToolRepository.build(
        sandbox,
        web_search=create_web_search_client(settings.brave_api_key, settings.web_search_timeout),
        vector_tools=vector_tools,
    )
    ui.print_banner(settings.llm.model, tools.names(), retriever is not None)
    return Agent(llm, ui, tools, ui, retriever=retriever, token=token)


def run_chat(settings: Settings, token: CancellationToken, ui: ConsoleUI) -> int:
    agent = build_agent(settings, token, ui)
    agent.run()
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Coding agent with sandboxed file tools and retrieval over an indexed workspace",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  code-editor                 # chat; files are read and written under ./workspace
  code-editor --index         # index ./workspace into the vector store, then exit
  code-editor --config my.json --verbose
        """,
    )
    parser.add_argument(
        "--index",
        action="store_true",
        help="Index files in the workspace directory for vector search, then exit",
    )
    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a JSON config file (default: ./config.json if present)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output with debug info",
    )
    args = parser.parse_args(argv)

    load_env_files()
    try:
        settings = load_settings(args.config, verbose=args.verbose)
    except (OSError, ValueError, TypeError, KeyError) as e:
        print(f"Error: could not load configuration: {e}", file=sys.stderr)
        return 1

    setup_logging(level=settings.log_level, log_file=settings.log_file)

    token = CancellationToken()
    ui = ConsoleUI()
    _install_signal_handlers(token, ui)
    try:
        if args.index:
            return run_index(settings, token)
        code = run_chat(settings, token, ui)
        ui.show_goodbye()
        return code
    except (KeyboardInterrupt, OperationCancelled):
        logger.warning("Interrupted by user")
        ui.show_goodbye()
        return 0
    except CodeEditorError as e:
        logger.error("%s", e, exc_info=settings.verbose)
        ui.show_error(str(e))
        return 1
    finally:
        _restore_signal_handlers()


if __name__ == "__main__":
    sys.exit(main())
