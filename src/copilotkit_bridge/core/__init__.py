"""Core chat orchestration: settings, prompts, message adaptation, the tool loop and projectors."""
