"""External adapters for the firemock document store.

This package contains everything that touches the outside world (sockets,
files, JSON wire shapes, the terminal) and provides implementations of the
core port interfaces.

Adapter Organization:

- wire/: Firestore REST JSON codec for values, documents, writes and queries
- fixtures/: Fixture sources for bulk loading (JSON files)
- http/: HTTP server and request receiver for the REST surface
- cli/: Command-line interface commands
"""
