"""HTTP transport adapters.

Expose the document store over a JSON API shaped like the Firestore v1
REST surface:
- Document reads, batch reads, commits and structured queries
- Admin endpoints to reset the store and load fixture data
- A public health check
"""

from .http_server import DocumentHTTPServer
from .receiver import DocumentRequestReceiver

__all__ = ["DocumentHTTPServer", "DocumentRequestReceiver"]
