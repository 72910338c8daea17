"""
Shared infrastructure: logging, correlation IDs, errors, results, transports.
"""
