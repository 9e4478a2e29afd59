"""Tests for adapter implementations.

These tests exercise adapters to validate correct translation between
core domain models and external formats (REST JSON, fixture files).
"""
