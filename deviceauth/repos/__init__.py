"""
Repository layer for the device auth service.

All SQL lives here and ONLY here. Every function takes the connection it
runs on so callers decide the transaction boundary.
"""
