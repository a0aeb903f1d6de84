"""
Integrations Module

Simulated government agencies (IPRS, KRA iTax, SASRA) and the eCitizen
payment gateway, with a verification audit log and PDF payment receipts.
"""
