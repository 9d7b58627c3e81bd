"""Infrastructure: persistence, channels, security and background services."""
