"""toolcall-llm - tool calling for locally hosted language models."""

__version__ = "0.1.0"

from . import tools
from . import model
from . import agent

__all__ = [
    "tools",
    "model",
    "agent",
]
