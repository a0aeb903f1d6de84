"""
Official Searches Module

Paid official searches of the cooperative register (SRCH-{year}-{seq}) and
the search certificates issued once the eCitizen bill is settled.
"""
