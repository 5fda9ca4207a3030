"""
Analysis package for the Banker's Arbiter.
Contains safety-check traces, request decisions and session metrics.
"""
