from abc import ABC, abstractmethod
from typing import Any


class AbstractLLMClient(ABC):
	"""Interface for LLM clients that answer a chat conversation."""

	@abstractmethod
	async def generate_content(
		self,
		contents: Any,
		*,
		system_prompt: Any,
	) -> dict[str, Any]:
		"""Send a conversation to the model and return the raw response payload.

		Args:
			contents: Conversation turns, forwarded verbatim to the provider.
			system_prompt: System instruction text for the model.

		Returns:
			dict[str, Any]: Decoded JSON response from the provider.

		Raises:
			UpstreamAppError: If the provider answers with a non-success status.
			UpstreamUnreachableAppError: If the provider cannot be reached or
				returns an undecodable success body.
		"""
		...
