"""
OpenAI chat-completions client used by the parser and the mediation engine.

Each call carries its own timeout. When it expires the underlying HTTP
request is cancelled and MediationTimeout is raised. Calls are never
retried.
"""
import logging

import openai

from assignai.config import OPENAI_API_KEY, OPENAI_MODEL
from assignai.errors import MediationError, MediationTimeout

logger = logging.getLogger(__name__)


class LLMClient:
    """Thin wrapper over openai.OpenAI().chat.completions.

    Usage:
        llm = LLMClient()
        text = llm.complete(
            [{"role": "system", "content": "..."}, {"role": "user", "content": "..."}],
            max_tokens=300, timeout=15,
        )
    """

    def __init__(self, api_key=None, model=None):
        self.api_key = api_key or OPENAI_API_KEY
        self.model = model or OPENAI_MODEL
        self._client = None

    @property
    def client(self):
        if self._client is None:
            if not self.api_key:
                raise MediationError("OPENAI_API_KEY not set")
            self._client = openai.OpenAI(api_key=self.api_key, max_retries=0)
        return self._client

    def complete(self, messages, max_tokens, timeout, temperature=0.7, model=None, **options):
        """Run one chat completion and return the reply text."""
        try:
            response = self.client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                max_tokens=max_tokens,
                temperature=temperature,
                timeout=timeout,
                **options
            )
        except openai.APITimeoutError as e:
            raise MediationTimeout(f"Model call exceeded {timeout}s") from e
        except openai.OpenAIError as e:
            raise MediationError(str(e)) from e

        if not response.choices:
            raise MediationError("Model returned no choices")
        content = response.choices[0].message.content
        if not content or not content.strip():
            raise MediationError("Model returned an empty reply")
        return content.strip()
