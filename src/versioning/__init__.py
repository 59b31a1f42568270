"""Version ordering schemes."""
