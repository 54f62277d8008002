import copy
import json
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULTS: dict = {
    "log_level": "INFO",
    "log_file": None,
    "workspace_dir": "./workspace",
    "index_dir": "./.vector_index",
    "collection_name": "code_snippets",
    "llm": {
        "model": "gpt-4o",
        "base_url": None,
        "max_tokens": 1024,
        "temperature": 0.2,
    },
    "embedding": {
        "provider": "openai",
        "model": "text-embedding-3-small",
        "local_model": "sentence-transformers/all-MiniLM-L6-v2",
    },
    "retrieval": {
        "top_k": 3,
        "max_context_chars": 4000,
    },
    "indexing": {
        "batch_size": 100,
        "max_snippet_chars": 10000,
        "max_file_bytes": 10 * 1024 * 1024,
    },
    "timeouts": {
        "embed_seconds": 30.0,
        "query_seconds": 5.0,
        "upsert_seconds": 10.0,
        "web_search_seconds": 15.0,
    },
    "binary": {
        "sample_bytes": 1000,
        "min_sample_bytes": 32,
        "marker_null_divisor": 50,
        "null_divisor": 1000,
        "control_divisor": 100,
        "extended_divisor": 50,
    },
}


@dataclass(frozen=True)
class LLMSettings:
    model: str
    base_url: str | None
    api_key: str | None
    max_tokens: int
    temperature: float


@dataclass(frozen=True)
class EmbeddingSettings:
    provider: str
    model: str
    local_model: str
    api_key: str | None


@dataclass(frozen=True)
class BinaryThresholds:
    """Tunable limits for the binary-content heuristic.

    Each divisor is applied to the number of sampled bytes; a counter above
    ``sample / divisor`` classifies the file as binary.
    """

    sample_bytes: int = 1000
    min_sample_bytes: int = 32
    marker_null_divisor: int = 50
    null_divisor: int = 1000
    control_divisor: int = 100
    extended_divisor: int = 50


@dataclass(frozen=True)
class Settings:
    """Immutable process configuration, built once by load_settings()."""

    workspace_dir: Path
    index_dir: Path
    collection_name: str
    llm: LLMSettings
    embedding: EmbeddingSettings
    brave_api_key: str | None = None
    log_level: str = "INFO"
    log_file: str | None = None
    verbose: bool = False
    top_k: int = 3
    max_context_chars: int = 4000
    batch_size: int = 100
    max_snippet_chars: int = 10000
    max_file_bytes: int = 10 * 1024 * 1024
    embed_timeout: float = 30.0
    query_timeout: float = 5.0
    upsert_timeout: float = 10.0
    web_search_timeout: float = 15.0
    binary: BinaryThresholds = field(default_factory=BinaryThresholds)


ENV_FILES = (".env.local", ".env")


def load_env_files(paths: tuple[str, ...] = ENV_FILES) -> list[str]:
    """Load KEY=VALUE files into os.environ without overriding existing variables.

    Returns:
        The files that were found and loaded
    """
    loaded = []
    for path in paths:
        if Path(path).is_file():
            load_dotenv(path, override=False)
            loaded.append(path)
        else:
            logger.debug("No %s file, using environment variables directly", path)
    return loaded


def _deep_update(base: dict, overrides: dict) -> dict:
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _env(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def _initialise_config(config_path: str | Path | None = None) -> dict:
    """Build the raw configuration dictionary.

    Loads defaults, then an optional JSON file, then environment overrides.
    """
    config = copy.deepcopy(DEFAULTS)

    path = Path(config_path) if config_path else Path("config.json")
    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = json.load(f)
        if not isinstance(loaded, dict):
            raise ValueError(f"{path} must contain a JSON object")
        _deep_update(config, loaded)
    except FileNotFoundError:
        if config_path:
            raise
        logger.debug("No %s found, using defaults", path)
    except json.JSONDecodeError as e:
        logger.warning("Could not parse %s: %s (using defaults)", path, e)

    if _env("CODE_EDITOR_LOG_LEVEL"):
        config["log_level"] = _env("CODE_EDITOR_LOG_LEVEL").upper()
    if os.getenv("CODE_EDITOR_LOG_FILE") is not None:
        config["log_file"] = os.getenv("CODE_EDITOR_LOG_FILE") or None
    if _env("CODE_EDITOR_WORKSPACE"):
        config["workspace_dir"] = _env("CODE_EDITOR_WORKSPACE")
    if _env("CODE_EDITOR_INDEX_DIR"):
        config["index_dir"] = _env("CODE_EDITOR_INDEX_DIR")
    if _env("CODE_EDITOR_LLM_MODEL"):
        config["llm"]["model"] = _env("CODE_EDITOR_LLM_MODEL")
    if _env("CODE_EDITOR_LLM_BASE_URL"):
        config["llm"]["base_url"] = _env("CODE_EDITOR_LLM_BASE_URL")
    if _env("CODE_EDITOR_EMBEDDING_PROVIDER"):
        config["embedding"]["provider"] = _env("CODE_EDITOR_EMBEDDING_PROVIDER").lower()

    return config


def load_settings(
    config_path: str | Path | None = None,
    verbose: bool = False,
) -> Settings:
    """Load configuration from config.json and the environment.

    Args:
        config_path: Explicit JSON config file; a missing explicit file is an error.
        verbose: Force DEBUG logging regardless of the configured level.

    Returns:
        Frozen Settings passed to every component that needs configuration.
    """
    config = _initialise_config(config_path)
    log_level = "DEBUG" if verbose else config["log_level"]
    llm = config["llm"]
    embedding = config["embedding"]
    retrieval = config["retrieval"]
    indexing = config["indexing"]
    timeouts = config["timeouts"]

    return Settings(
        workspace_dir=Path(config["workspace_dir"]).resolve(),
        index_dir=Path(config["index_dir"]).resolve(),
        collection_name=config["collection_name"],
        llm=LLMSettings(
            model=llm["model"],
            base_url=llm.get("base_url"),
            api_key=_env("CODE_EDITOR_LLM_API_KEY") or _env("OPENAI_API_KEY"),
            max_tokens=int(llm["max_tokens"]),
            temperature=float(llm["temperature"]),
        ),
        embedding=EmbeddingSettings(
            provider=embedding["provider"],
            model=embedding["model"],
            local_model=embedding["local_model"],
            api_key=_env("OPENAI_API_KEY"),
        ),
        brave_api_key=_env("BRAVE_API_KEY"),
        log_level=log_level,
        log_file=config.get("log_file"),
        verbose=log_level == "DEBUG",
        top_k=int(retrieval["top_k"]),
        max_context_chars=int(retrieval["max_context_chars"]),
        batch_size=int(indexing["batch_size"]),
        max_snippet_chars=int(indexing["max_snippet_chars"]),
        max_file_bytes=int(indexing["max_file_bytes"]),
        embed_timeout=float(timeouts["embed_seconds"]),
        query_timeout=float(timeouts["query_seconds"]),
        upsert_timeout=float(timeouts["upsert_seconds"]),
        web_search_timeout=float(timeouts["web_search_seconds"]),
        binary=BinaryThresholds(**config["binary"]),
    )
