"""Function tools: build Tool implementations from annotated functions.

``function_tool`` reads a function's signature and type hints, generates a
pydantic model for its parameters, and exposes the model's JSON Schema as
tool metadata. Arguments from the model are validated against the same
pydantic model before the function runs; unknown arguments are rejected
so hallucinated parameters never reach the function.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any, get_type_hints

from pydantic import BaseModel, ConfigDict, ValidationError, create_model

from rag.exceptions import ToolExecutionError, ToolRegistrationError
from rag.shell import run_command
from rag.toolkit.models import ToolMetaData
from rag.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


def _build_parameters_model(func: Callable[..., Any], tool_name: str) -> type[BaseModel]:
    """Create a pydantic model whose fields mirror ``func``'s parameters."""
    try:
        hints = get_type_hints(func)
    except (NameError, TypeError) as exc:
        raise ToolRegistrationError(
            f"Cannot resolve type hints of {func.__qualname__}: {exc}"
        ) from exc

    fields: dict[str, Any] = {}
    for param in inspect.signature(func).parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            raise ToolRegistrationError(
                f"Tool {tool_name} cannot take *args or **kwargs"
            )
        annotation = hints.get(param.name, Any)
        default = ... if param.default is param.empty else param.default
        fields[param.name] = (annotation, default)

    return create_model(
        f"{tool_name}Parameters",
        __config__=ConfigDict(extra="forbid"),
        **fields,
    )


class FunctionTool:
    """A Tool backed by a plain Python function.

    The instance stays callable like the wrapped function.
    """

    def __init__(self, func: Callable[..., Any], *, name: str, description: str) -> None:
        self._func = func
        self._parameters_model = _build_parameters_model(func, name)
        self._metadata = ToolMetaData(
            name=name,
            description=description,
            parameters=self._parameters_model.model_json_schema(),
        )

    @property
    def func(self) -> Callable[..., Any]:
        return self._func

    def metadata(self) -> ToolMetaData:
        return self._metadata

    def execute(self, parameters: Any) -> Any:
        """Validate ``parameters`` and call the wrapped function.

        Raises:
            ToolExecutionError: If validation fails or the function raises.
        """
        name = self._metadata.name
        if not isinstance(parameters, dict):
            raise ToolExecutionError(
                name, f"parameters must be a JSON object, got {type(parameters).__name__}"
            )
        try:
            validated = self._parameters_model.model_validate(parameters)
        except ValidationError as exc:
            raise ToolExecutionError(name, str(exc)) from exc

        kwargs = {field: getattr(validated, field) for field in type(validated).model_fields}
        try:
            return self._func(**kwargs)
        except Exception as exc:
            logger.debug("Tool %s raised", name, exc_info=True)
            raise ToolExecutionError(name, f"{type(exc).__name__}: {exc}") from exc

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        return self._func(*args, **kwargs)

    def __repr__(self) -> str:
        return f"<FunctionTool {self._metadata.name}>"


def function_tool(
    func: Callable[..., Any] | None = None,
    *,
    name: str | None = None,
    description: str | None = None,
) -> Any:
    """Turn a type-annotated function into a :class:`FunctionTool`.

    Usable bare (``@function_tool``) or with arguments
    (``@function_tool(name="Add", description="add a with b")``). The name
    defaults to the function name and the description to its docstring.
    """

    def wrap(fn: Callable[..., Any]) -> FunctionTool:
        return FunctionTool(
            fn,
            name=name or fn.__name__,
            description=description or inspect.getdoc(fn) or "",
        )

    if func is not None:
        return wrap(func)
    return wrap


# ---------------------------------------------------------------------------
# Built-in tools
# ---------------------------------------------------------------------------


@function_tool(name="Add", description="add a with b")
def add(a: int, b: int) -> int:
    return a + b


@function_tool(
    name="ExecuteCommand",
    description=(
        "Execute any command you pass by (no check). Returns the command's "
        "output, or `Ok` when it printed nothing. On failure, returns the "
        "reason."
    ),
)
def execute_command(command: str) -> str:
    try:
        output = run_command(command, timeout=60)
    except (OSError, ValueError) as exc:
        return f"Failed to start command: {exc}"
    if not output.ok:
        return f"Command failed with exit code {output.returncode}: {output.stderr}"
    return output.stdout or "Ok"


def default_registry(*, allow_commands: bool = False) -> ToolRegistry:
    """Registry with the built-in tools.

    Args:
        allow_commands: Also register ExecuteCommand, which runs arbitrary
            commands on this machine.
    """
    registry = ToolRegistry()
    registry.register(add)
    if allow_commands:
        registry.register(execute_command)
    return registry
