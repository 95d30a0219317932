"""Tyflocentrum push notification backend."""
