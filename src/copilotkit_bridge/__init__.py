"""CopilotKit bridge: serves the CopilotKit runtime protocol on OpenAI chat completions with server-side tools."""

__version__ = "1.0.0"
