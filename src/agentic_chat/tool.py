from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Tool(Protocol):
    """Something the model can call during a chat turn.

    ``execute`` reports failures as text starting with ``Error`` so the model can
    read them; it does not raise for bad input or failed lookups.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> dict[str, Any]: ...

    async def execute(self, tool_input: dict[str, Any]) -> str: ...


def tool_definitions(tools: list[Tool]) -> list[dict]:
    """Provider-neutral definitions: ``name``, ``description`` and JSON ``input_schema``."""
    return [{"name": t.name, "description": t.description, "input_schema": t.input_schema} for t in tools]
