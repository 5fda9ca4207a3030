"""
Algorithms package for the Banker's Arbiter.
Contains the safety check and the request arbitration protocol.
"""
