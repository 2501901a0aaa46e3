"""OAuth login, identity resolution and session tokens."""
