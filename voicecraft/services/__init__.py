"""Clients for collaborators outside the practice core."""
