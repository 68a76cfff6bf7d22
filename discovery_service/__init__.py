"""Maid discovery, recommendation and slot suggestion service."""
