"""
Stagehand - Test Suite
"""
