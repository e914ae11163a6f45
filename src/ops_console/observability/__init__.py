"""
ops_console.observability

Structured logging and request-context propagation.
"""
