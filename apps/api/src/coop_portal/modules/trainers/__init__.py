"""
Trainers Module

Trainer accreditation (TRN-{year}-{seq} applications reviewed by county or
national admins) and the public directory of approved trainers.
"""
