"""Error types raised by the chat loop, tool registry and configuration layer."""


class FamilyGlitchError(Exception):
    """Base class for errors raised by the host."""


class ConfigurationError(FamilyGlitchError):
    """Missing or invalid configuration (e.g. no API key). Fatal, never retried."""


class ToolNotFoundError(FamilyGlitchError):
    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class ToolArgumentError(FamilyGlitchError):
    """Tool arguments were not valid JSON or did not match the tool's schema."""

    def __init__(self, name: str, message: str):
        super().__init__(f"Invalid arguments for {name}: {message}")
        self.name = name


class ToolNotAvailableError(FamilyGlitchError):
    """A registered tool the model called although it was not offered for this request."""

    def __init__(self, name: str):
        super().__init__(f"Tool not available: {name}")
        self.name = name


class TranscriptError(FamilyGlitchError):
    """A conversation transcript breaks tool-call pairing rules."""


class MaxIterationsError(FamilyGlitchError):
    def __init__(self, iterations: int):
        super().__init__("Max tool execution iterations reached")
        self.iterations = iterations
