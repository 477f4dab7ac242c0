"""
HTTP layer: routes, dependencies and middleware.
"""
