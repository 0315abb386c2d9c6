"""Hospital Records API: patients, visits and documents with keyset pagination."""

__version__ = "1.0.0"
