"""
Tests for logging and tracing setup.
"""
