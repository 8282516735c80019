"""
API middleware: POS error types and the handlers that render them.
"""
