"""
Stagehand - Property-Based Testing Suite

Property-based testing using Hypothesis to check ordering, exactly-once and
stage invariants of the lifecycle manager.
"""
