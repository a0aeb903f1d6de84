"""
Notifications Module

In-app notifications fired by workflow transitions (assignment and
decisions) and read by users from the portal header.
"""
