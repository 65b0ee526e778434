"""Services behind the forest commands."""
