"""Built-in plugins shipped with aiui."""
