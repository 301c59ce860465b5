"""
Utility modules: environment parsing, error types and run-level logging.
"""
