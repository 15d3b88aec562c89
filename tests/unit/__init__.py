"""Unit tests for individual components in isolation.

Coverage:
    - models/: Pydantic validation
    - store/: Title derivation, message append, local bookkeeping
    - client/: Configuration, URL building and error mapping
    - storage/: S3 service against a mocked boto3 client
"""
