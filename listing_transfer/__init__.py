"""Listing transfer: move property listings from a source to a target system."""

__version__ = "0.1.0"
