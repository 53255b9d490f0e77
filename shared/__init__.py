"""
Shared utilities for the identity client.

This package aggregates common building blocks:

- config: Client configuration via pydantic-settings
- logging: Structured logging with device/user correlation
- errors: Canonical error types and the error envelope
- test_helpers: Token and identity-service fixtures for tests

Do not import from identity_client into shared/.
"""
