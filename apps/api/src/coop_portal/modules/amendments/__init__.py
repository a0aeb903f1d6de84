"""
Amendments Module

Amendment requests raised by cooperative admins (bylaws, name, address,
officials, membership rules, share capital) and reviewed by county admins.
Numbers follow AMD-{year}-{seq}.
"""
