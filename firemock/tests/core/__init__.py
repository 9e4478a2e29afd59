"""Unit tests for core domain logic.

These tests exercise the document tree, value ordering, filters, queries
and commits without any adapter code.
"""
