"""
Top-level package for the content verification service.

The service exposes a FastAPI app (see `main.py`) that checks uploaded
images with a TorchScript classifier and pasted news text against the
Wikipedia summary API, and keeps a placeholder wallet identity in memory.
"""
