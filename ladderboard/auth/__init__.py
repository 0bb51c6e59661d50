"""Account authentication."""
