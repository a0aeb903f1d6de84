"""
Counties Module

County tenants managed by the super admin.
"""
