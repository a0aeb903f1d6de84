"""
Users module - Portal accounts and role grants.
"""
