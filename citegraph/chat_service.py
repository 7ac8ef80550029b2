"""
Chat completion client for OpenAI-compatible endpoints (DeepSeek by default).
"""

from typing import Optional

from openai import OpenAI, OpenAIError

from citegraph.service_interfaces import ChatInterface
from citegraph.logging_config import Logger, log_performance
from citegraph.validation_and_errors import UpstreamFailure


logger = Logger(__name__)


class OpenAIChat(ChatInterface):
    """System + user prompt in, first choice's text out"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        client=None,
    ):
        self.model = model
        self.client = client or OpenAI(api_key=api_key, base_url=base_url)

    @log_performance
    def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.7,
    ) -> str:
        prompt_preview = user_prompt[:60].replace("\n", " ")
        logger.info(f"Chat call ({self.model}): {prompt_preview}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=temperature,
            )
        except OpenAIError as e:
            raise UpstreamFailure("chat", str(e)) from e

        if not response.choices:
            raise UpstreamFailure("chat", "response has no choices")
        content = response.choices[0].message.content or ""
        return content.strip()
