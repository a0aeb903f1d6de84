"""
Cooperatives Module

Registered cooperative societies:
- Role-scoped listing for county staff and cooperative admins
- Public official registry search
- Creation from an approved registration application
- Member count kept in step with the active roster
"""
