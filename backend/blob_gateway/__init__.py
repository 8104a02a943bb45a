"""
Blob gateway: namespace/key addressed blob storage over S3-compatible buckets.
"""
__version__ = "0.1.0"
