"""Test suite for the firemock document store.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - No I/O, fast execution
   - Exercise the store, tree, filters and mutations directly

2. adapters/: Tests for adapter implementations
   - Wire codec, fixture loader, HTTP receiver and live HTTP server
   - Validates translation between core models and external formats

3. fakes/: Port implementations for testing
   - In-memory DocumentStorePort and FixtureSourcePort
   - Used where a test only cares about what an adapter sends to the store
"""
