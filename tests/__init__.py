"""
TestLink Test Case Integration - Test Suite Package.

Unit tests run against a mocked TestLink XML-RPC client:
- functional/: Annotated example tests, exported when a server is configured.
"""
