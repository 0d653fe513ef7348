"""Interface for LLM calls constrained by a JSON schema."""

from typing import Protocol


class StructuredOutputClient(Protocol):
    """Interface for schema-constrained LLM completions."""

    async def complete(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        timeout: float,
    ) -> dict[str, object]:
        """Return the parsed JSON object produced for the prompt."""
