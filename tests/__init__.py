"""Test suite for authsync.

Test structure follows the test pyramid:
- unit/: Unit tests - one component at a time, collaborators faked or mocked
- integration/: Integration tests - the wired runtime over fake REST and
  duplex transports, covering complete user journeys
"""
