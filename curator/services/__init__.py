"""Business services; each owns a session and commits its own unit of work."""
