"""Domain layer — custody states, actions and borrower records.

This layer depends only on stdlib and pydantic.
It must never import from services, scheduling, commands, or config.
"""
