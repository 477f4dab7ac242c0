"""
Background worker for scheduled maintenance.
"""
