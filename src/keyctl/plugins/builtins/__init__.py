"""Built-in plugins shipped with keyctl."""
