"""
Complaints Module

Public complaints against cooperatives (anonymous filing allowed), assigned to
county investigators and closed as RESOLVED or DISMISSED.
Numbers follow CPL-{year}-{seq}.
"""
