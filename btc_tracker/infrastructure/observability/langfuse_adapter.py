"""
Infrastructure adapter: Langfuse → IObservabilityHandler.

Langfuse is imported lazily so this module loads without LANGFUSE_* variables;
the composition root only builds the handler when both keys are configured.
"""

from typing import Any

from btc_tracker.domain.ports.observability_port import IObservabilityHandler


class LangfuseObservabilityHandler(IObservabilityHandler):
    """Wraps the Langfuse LangChain CallbackHandler for headline model calls."""

    def __init__(self) -> None:
        from langfuse.langchain import CallbackHandler
        self._handler = CallbackHandler()

    def as_callback(self) -> Any:
        return self._handler

    def flush(self) -> None:
        """Send pending traces before the process exits."""
        from langfuse import get_client
        get_client().flush()
