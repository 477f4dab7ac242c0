"""
Core: configuration, errors, security, hooks and the container.
"""
