import pytest


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's TOOLCALL_LLM_* settings out of the tests."""
    for name in (
        "TOOLCALL_LLM_MODEL",
        "TOOLCALL_LLM_API_BASE",
        "TOOLCALL_LLM_API_KEY",
        "TOOLCALL_LLM_MAX_TOKENS",
        "TOOLCALL_LLM_TOOL_MODE",
        "TOOLCALL_LLM_TOOL_TIMEOUT",
        "TOOLCALL_LLM_SHELL",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
