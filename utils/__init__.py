"""
Utilities package for the Banker's Arbiter.
Contains the state loader, logger and text reporter.
"""
