"""
Tests for the lifecycle kernel.
"""
