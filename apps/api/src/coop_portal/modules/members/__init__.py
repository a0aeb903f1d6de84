"""
Members Module

Cooperative membership rosters.
"""
