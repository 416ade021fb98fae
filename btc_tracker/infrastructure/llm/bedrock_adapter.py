"""
Infrastructure adapter: Amazon Bedrock (ChatBedrock) → ILanguageModel.
All ChatBedrock / langchain_aws details are confined here.
"""

import os
from typing import Any, Optional

from langchain_aws import ChatBedrock

from btc_tracker.domain.ports.llm_port import ILanguageModel


class BedrockChatAdapter(ILanguageModel):
    """Wraps ChatBedrock for short, low-temperature headline generation."""

    DEFAULT_MODEL_ID = "us.amazon.nova-lite-v1:0"
    MAX_TOKENS = 80

    def __init__(self, model_id: Optional[str] = None, region: Optional[str] = None) -> None:
        self.model_id = model_id or self.DEFAULT_MODEL_ID
        self._llm = ChatBedrock(
            model=self.model_id,
            model_kwargs={"temperature": 0.3, "max_tokens": self.MAX_TOKENS},
            region_name=region or os.environ.get("AWS_DEFAULT_REGION", "us-east-1"),
        )

    def invoke(self, messages: list[Any], config: Optional[dict] = None) -> Any:
        return self._llm.invoke(messages, config=config)
