"""End-to-end weekly update agent."""
