"""Generation service access: client, rate-limited gateway, prompt templates and response parsing."""
