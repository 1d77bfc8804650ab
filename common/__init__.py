"""
Shared pieces: config loading, JSON logging, data types, time helpers.
"""
