"""HTTP surface of the CopilotKit bridge."""
