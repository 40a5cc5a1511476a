"""
Tests for the error hierarchy.
"""
