"""
Port (interface) for the language model behind the dashboard headline.
Infrastructure adapters (e.g. BedrockChatAdapter) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class ILanguageModel(ABC):
    model_id: str

    @abstractmethod
    def invoke(self, messages: list[Any], config: Optional[dict] = None) -> Any:
        """Invoke the model synchronously and return a response message.

        *config* is a LangChain RunnableConfig (callbacks, metadata) passed through
        to the underlying model.
        """
        ...
