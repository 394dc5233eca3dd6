"""Runner configuration.

Settings come from a YAML file (``settings.yaml`` by default) and can be
overridden from the environment or a ``.env`` file in the working directory:

- OPENAI_API_KEY: API key used for both the primary and the judge call
- OPENAI_BASE_URL: API base URL
- FNCHECK_MODEL_CORE: model under test
- FNCHECK_MODEL_MEANING_VERIFICATION: judge model
- FNCHECK_SYSTEM_PROMPT: system prompt prepended to every request

The tool structure (``structure.json``) holds the tool schemas sent with every
primary request, the parallel tool call policy and a fallback model.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError


logger = logging.getLogger(__name__)

# Defaults
DEFAULT_SETTINGS_FILE = "settings.yaml"
DEFAULT_STRUCTURE_FILE = "structure.json"
DEFAULT_CASES_FILE = "cases.json"
DEFAULT_BASE_URL = "https://api.openai.com/v1"
DEFAULT_JUDGE_MODEL = "gpt-4.1-mini"
REQUEST_TIMEOUT = 30.0
JUDGE_TIMEOUT = 15.0

# Environment variable -> settings field
ENV_OVERRIDES = {
    "OPENAI_API_KEY": "api_key",
    "OPENAI_BASE_URL": "base_url",
    "FNCHECK_MODEL_CORE": "model_core",
    "FNCHECK_MODEL_MEANING_VERIFICATION": "model_meaning_verification",
    "FNCHECK_SYSTEM_PROMPT": "system_prompt",
}


class Settings(BaseModel):
    """
    Runner settings.

    Attributes:
        api_key: API key for both endpoints
        model_core: Model under test; falls back to the structure's model
        model_meaning_verification: Judge model for meaning checks
        system_prompt: Prepended as a system message to every primary request
        base_url: API base URL
        request_timeout: Seconds before the primary call is abandoned
        judge_timeout: Seconds before the judge call is abandoned
    """
    api_key: str = Field(min_length=1)
    model_core: str | None = None
    model_meaning_verification: str = DEFAULT_JUDGE_MODEL
    system_prompt: str | None = None
    base_url: str = DEFAULT_BASE_URL
    request_timeout: float = Field(default=REQUEST_TIMEOUT, gt=0)
    judge_timeout: float = Field(default=JUDGE_TIMEOUT, gt=0)

    model_config = {"extra": "ignore"}

    @field_validator("api_key")
    @classmethod
    def _strip_api_key(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("API key is empty")
        return value


class ToolStructure(BaseModel):
    """
    Tool definitions and request policy sent with every primary call.

    Attributes:
        model: Fallback model when settings do not name one
        tools: Tool schemas in Responses API format
        parallel_tool_calls: Passed through to the API unchanged
    """
    model: str | None = None
    tools: list[dict[str, Any]] = Field(default_factory=list)
    parallel_tool_calls: bool = True

    model_config = {"extra": "ignore"}


def load_environment(env_file: str | Path = ".env") -> bool:
    """Load a ``.env`` file into the process environment if it exists.

    Returns:
        True if a file was loaded.
    """
    env_path = Path(env_file)
    if not env_path.exists():
        return False
    load_dotenv(env_path, override=False)
    logger.debug(f"Loaded environment from {env_path}")
    return True


def read_document(path: str | Path, label: str) -> Any:
    """Parse a configuration or case file.

    ``.json`` files are read with ``json``; anything else (``.yaml``, ``.yml``)
    with ``yaml.safe_load``. YAML 1.1 does not accept every JSON document
    unchanged (``1e5`` becomes a string, tabs are rejected).

    Args:
        path: File to read.
        label: What the file holds, for error messages.

    Returns:
        The decoded document, or None if the file is empty.

    Raises:
        ConfigurationError: If the file cannot be read, is not UTF-8, or
            does not parse.
    """
    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            text = f.read()
    except UnicodeDecodeError as e:
        raise ConfigurationError(f"Failed to load {label} {file_path}: not valid UTF-8 ({e})") from e
    except OSError as e:
        raise ConfigurationError(f"Failed to load {label} {file_path}: {e}") from e

    if not text.strip():
        return None

    try:
        if file_path.suffix.lower() == ".json":
            return json.loads(text)
        return yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.exception(f"Failed to parse {label}: {file_path}")
        raise ConfigurationError(f"Failed to parse {label} {file_path}: {e}") from e


def load_settings(path: str | Path = DEFAULT_SETTINGS_FILE) -> Settings:
    """Load settings from a YAML file, applying environment overrides.

    A missing settings file is tolerated as long as the environment supplies
    the API key.

    Args:
        path: Path to the settings file.

    Returns:
        Validated Settings.

    Raises:
        ConfigurationError: If the file is unparsable, is not a mapping, or
            no API key is configured.
    """
    settings_path = Path(path)
    data: dict[str, Any] = {}

    if settings_path.exists():
        logger.info(f"Loading settings from {settings_path}")
        loaded = read_document(settings_path, "settings")
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Settings in {settings_path} must be a mapping")
        data = dict(loaded or {})
    else:
        logger.warning(f"Settings file not found: {settings_path}; using environment only")

    for env_name, field_name in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            data[field_name] = value

    if not data.get("api_key"):
        raise ConfigurationError(
            f"API key not found in {settings_path} or the OPENAI_API_KEY environment variable"
        )

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e


def load_structure(path: str | Path = DEFAULT_STRUCTURE_FILE) -> ToolStructure:
    """Load the tool structure file.

    Raises:
        ConfigurationError: If the file is missing, unparsable or invalid.
    """
    structure_path = Path(path)
    if not structure_path.exists():
        raise ConfigurationError(f"Failed to load {structure_path}: file not found")

    data = read_document(structure_path, "tool structure")
    if not isinstance(data, dict):
        raise ConfigurationError(f"Failed to parse {structure_path}: expected a mapping")

    try:
        structure = ToolStructure(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid tool structure in {structure_path}: {e}") from e

    logger.info(f"Loaded {len(structure.tools)} tool definition(s) from {structure_path}")
    return structure


def resolve_core_model(settings: Settings, structure: ToolStructure) -> str:
    """Pick the model under test: settings first, then the structure file."""
    model = settings.model_core or structure.model
    if not model:
        raise ConfigurationError(
            "No model configured: set model_core in settings or model in the tool structure"
        )
    return model
