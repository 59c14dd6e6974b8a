"""Output layer — Rich console and result formatting."""
