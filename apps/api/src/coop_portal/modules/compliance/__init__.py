"""
Compliance Module

Yearly compliance reports (CR-{year}-{seq}) with a score derived from four
checks, reviewed by county staff and auditors.
"""
