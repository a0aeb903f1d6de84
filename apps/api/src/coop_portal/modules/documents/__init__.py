"""
Documents Module

Supporting-document uploads backed by S3-compatible object storage.
"""
