"""Core interfaces.

Structural contracts (Protocol) implemented by concrete adapters, so the
core depends on abstractions rather than on storage or UI details.
"""
