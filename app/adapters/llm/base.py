from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that turn a prompt into generated text."""

	@abstractmethod
	async def generate_text(
		self,
		prompt: str,
		*,
		temperature: float | None = None,
		max_output_tokens: int | None = None,
		**kwargs: Any,
	) -> str:
		"""Generate text for a single prompt.

		Args:
			prompt: Prompt to send to the model.
			temperature: Optional sampling temperature override.
			max_output_tokens: Optional output length cap override.
			**kwargs: Provider-specific options.

		Returns:
			str: Text of the first candidate returned by the model.

		Raises:
			LLMAppError: If the provider call fails or the response has no text.
		"""
		...
