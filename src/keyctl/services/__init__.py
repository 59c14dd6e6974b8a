"""Service layer — custody operations returning ServiceResult.

Services may import from domain, scheduling, config and plugins.
They must never import from commands, output, or console.
"""
