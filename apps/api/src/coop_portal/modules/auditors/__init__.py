"""
Auditors Module

Accreditation of cooperative auditors (AUD-{year}-{seq} applications reviewed
by county or national admins) and the public directory of accredited auditors.
"""
