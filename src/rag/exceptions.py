"""rag exception hierarchy.

All rag-specific exceptions inherit from RagError.
"""


class RagError(Exception):
    """Base exception for all rag errors."""


class ConfigError(RagError):
    """Raised when the configuration file cannot be read or parsed."""


class StreamError(RagError):
    """Raised when a streamed chunk does not have the expected shape.

    Attributes:
        partial_answer: Content accumulated before the failure.
    """

    def __init__(self, message: str, partial_answer: str = "") -> None:
        self.partial_answer = partial_answer
        super().__init__(message)


class HookError(RagError):
    """Raised when a hook fails; aborts the remaining hooks of that point."""

    def __init__(self, hook_name: str, point: str, cause: BaseException) -> None:
        self.hook_name = hook_name
        self.point = point
        self.cause = cause
        super().__init__(f"Hook {hook_name} failed during {point}: {cause}")


class ToolError(RagError):
    """Base for all tool registration, lookup and execution errors."""


class ToolRegistrationError(ToolError):
    """Raised when a tool's metadata is invalid (e.g. name is not an identifier)."""


class DuplicateToolError(ToolRegistrationError):
    """Raised when a tool name is registered twice without ``replace=True``."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(
            f"Tool already registered: {tool_name}. "
            f"Pass replace=True to override it."
        )


class UnknownToolError(ToolError):
    """Raised when a tool name has no registered implementation."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}")


class ArgumentParseError(ToolError):
    """Raised when accumulated tool-call arguments are not valid JSON."""

    def __init__(self, tool_name: str, arguments: str, reason: str) -> None:
        self.tool_name = tool_name
        self.arguments = arguments
        super().__init__(
            f"Invalid arguments for tool {tool_name}: {reason}. "
            f"Arguments: {arguments!r}"
        )


class ToolExecutionError(ToolError):
    """Raised when a tool fails while executing."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Tool {tool_name} failed: {reason}")
