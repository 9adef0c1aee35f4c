"""Settings, environment loading and the shared rate limiter."""
