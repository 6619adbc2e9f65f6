"""Model configuration."""

import os
import logging
from typing import Optional
from dataclasses import dataclass

from toolcall_llm.agent.results import ToolMode
from toolcall_llm.tools.shell import default_shell

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "ollama_chat/qwen2.5-coder:7b"
DEFAULT_MAX_TOKENS = 8000


@dataclass
class ModelConfig:
    """Configuration for a local chat model and its tools."""
    model: str = DEFAULT_MODEL
    api_base: Optional[str] = None  # Endpoint of the local inference server
    api_key: Optional[str] = None
    temperature: float = 0.1
    top_p: float = 0.9
    max_tokens: int = DEFAULT_MAX_TOKENS
    tool_mode: ToolMode = ToolMode.AUTO  # "auto", "native" or "text"
    tool_timeout: int = 60  # Seconds a tool handler may run
    request_timeout: Optional[float] = None  # Seconds per model call
    max_rounds: int = 10  # Model calls allowed in multi-round dispatch
    shell: Optional[str] = None  # Shell for RunShellScript (bash, or powershell on Windows)

    def __post_init__(self):
        self.tool_mode = ToolMode(self.tool_mode)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "model": self.model,
            "api_base": self.api_base,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "max_tokens": self.max_tokens,
            "tool_mode": self.tool_mode.value,
            "tool_timeout": self.tool_timeout,
            "request_timeout": self.request_timeout,
            "max_rounds": self.max_rounds,
            "shell": self.shell,
        }

    @classmethod
    def from_env(cls, **overrides) -> "ModelConfig":
        """
        Build a configuration from TOOLCALL_LLM_* environment variables.

        Keyword overrides that are not None take precedence over the environment.

        Raises:
            ValueError: If a numeric variable or the tool mode is invalid
        """
        values = {
            "model": os.getenv("TOOLCALL_LLM_MODEL", DEFAULT_MODEL),
            "api_base": os.getenv("TOOLCALL_LLM_API_BASE") or None,
            "api_key": os.getenv("TOOLCALL_LLM_API_KEY") or None,
            "max_tokens": _int_env("TOOLCALL_LLM_MAX_TOKENS", DEFAULT_MAX_TOKENS),
            "tool_mode": os.getenv("TOOLCALL_LLM_TOOL_MODE", ToolMode.AUTO.value),
            "tool_timeout": _int_env("TOOLCALL_LLM_TOOL_TIMEOUT", 60),
            "shell": os.getenv("TOOLCALL_LLM_SHELL") or default_shell(),
        }
        values.update({key: value for key, value in overrides.items() if value is not None})
        config = cls(**values)
        logger.debug(f"Loaded model config: {config.to_dict()}")
        return config


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got '{raw}'")
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer, got {value}")
    return value
