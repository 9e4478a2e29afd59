"""Wire format adapters.

Encodes and decodes the Firestore REST JSON shapes used by the HTTP
transport.
"""

from .codec import WireFormatError

__all__ = ["WireFormatError"]
