"""Command-line interface adapters.

Provides CLI commands for working with the document store:
- get / exists / batch_get: Read documents
- set / update: Write documents
- query: Run structured queries
- reset / load / stats: Administer the store
"""
