"""
Configuration loading and validation for settings.

Provides strongly typed settings objects for the directory download, row
decoding and logging, loaded from environment variables with upfront
validation.
"""
