"""
Wallet identity placeholder.

Nothing in here is a security mechanism. See `stub.py`.
"""
