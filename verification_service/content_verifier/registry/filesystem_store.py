"""
Filesystem location of the classifier artefact.

The model is a single TorchScript file expected at:

    <MODEL_ROOT>/<MODEL_NAME>.pt

It is produced elsewhere and shipped with the deployment; this service
never writes to the directory.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..config import MODEL_NAME, MODEL_ROOT


class FilesystemModelRegistry:
    """Resolves model names to local filesystem paths."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self._root = root or MODEL_ROOT

    @property
    def root(self) -> Path:
        return self._root

    def resolve(self, name: str = MODEL_NAME) -> Path:
        """
        Resolve a model name into its artefact path.

        A trailing `.pt` is accepted so callers may pass a file name.
        """
        stem = name.strip().removesuffix(".pt")
        return self._root / f"{stem}.pt"
