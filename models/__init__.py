"""
Models package for the Banker's Arbiter.
Contains the resource table, state snapshot and error taxonomy.
"""
