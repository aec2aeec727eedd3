"""
Generic utility functions shared across modules.

Includes the clock abstraction and logging setup.
"""
