"""
Backend selection and one-shot loading of the classifier artefact.

Loading happens once per process:

- pick the first usable torch device from the configured list;
- load the TorchScript file on a worker thread, raced against a timeout;
- run one inference on a zero tensor so lazy initialisation happens before
  the first user request;
- publish the handle.

Any failure is terminal for the process: the error is kept on the loader
and image verification stays disabled. There is no retry.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import torch

from ..config import BACKENDS, INPUT_SIZE, MODEL_LOAD_TIMEOUT_S
from ..errors import BackendUnavailableError, ModelLoadError, ModelNotReadyError
from ..registry.filesystem_store import FilesystemModelRegistry
from ..schemas import ModelStatus

logger = logging.getLogger(__name__)


def _check_device(name: str) -> torch.device:
    device = torch.device(name)
    if device.type == "cuda" and not torch.cuda.is_available():
        raise RuntimeError("CUDA is not available")
    if device.type == "mps" and not torch.backends.mps.is_available():
        raise RuntimeError("MPS is not available")
    # Availability flags can lie (driver mismatch), so allocate something.
    torch.zeros(1, device=device)
    return device


def select_backend(candidates: Sequence[str] = BACKENDS) -> torch.device:
    """
    Return the first torch device in `candidates` that can hold a tensor.

    Raises `BackendUnavailableError` if none of them can.
    """
    for name in candidates:
        try:
            device = _check_device(name)
        except Exception as exc:
            logger.warning("Backend %r unavailable, falling back: %s", name, exc)
            continue
        logger.info("Using %s backend", device.type)
        return device

    logger.error("No usable torch backend among %s", list(candidates))
    raise BackendUnavailableError("Failed to initialize torch backend")


@dataclass
class LoadedModel:
    module: torch.nn.Module
    device: torch.device

    def predict(self, batch: torch.Tensor) -> float:
        """Run the classifier and return the first output element as the score."""
        with torch.inference_mode():
            output = self.module(batch.to(self.device))
            values = output.detach().flatten()
            if values.numel() == 0:
                raise ValueError("Model returned an empty output")
            return float(values[0].item())


class ModelLoader:
    """Owns the classifier handle for the lifetime of the app."""

    def __init__(
        self,
        path: Optional[Path] = None,
        *,
        backends: Sequence[str] = BACKENDS,
        timeout_s: float = MODEL_LOAD_TIMEOUT_S,
        input_size: int = INPUT_SIZE,
    ) -> None:
        self._path = path or FilesystemModelRegistry().resolve()
        self._backends = tuple(backends)
        self._timeout_s = timeout_s
        self._input_size = input_size

        self._status = ModelStatus.IDLE
        self._error: Optional[str] = None
        self._model: Optional[LoadedModel] = None

    @property
    def path(self) -> Path:
        return self._path

    @property
    def status(self) -> ModelStatus:
        return self._status

    @property
    def error(self) -> Optional[str]:
        return self._error

    @property
    def is_ready(self) -> bool:
        return self._status is ModelStatus.READY and self._model is not None

    @property
    def backend(self) -> Optional[str]:
        return self._model.device.type if self._model is not None else None

    @property
    def model(self) -> LoadedModel:
        if self._model is None:
            raise ModelNotReadyError("Model is not loaded")
        return self._model

    def _read_artifact(self, device: torch.device) -> torch.nn.Module:
        module = torch.jit.load(str(self._path), map_location=device)
        module.eval()
        return module

    def _warm_up(self, module: torch.nn.Module, device: torch.device) -> None:
        size = self._input_size
        with torch.inference_mode():
            dummy = torch.zeros(1, size, size, 3, device=device)
            output = module(dummy)
            if output.numel() == 0:
                raise ModelLoadError("warm-up inference returned no output")

    def _fail(self, message: str) -> None:
        logger.error(message)
        self._status = ModelStatus.ERROR
        self._error = message

    async def load(self) -> None:
        """Select a backend, load and warm up the model. Never raises."""
        if self._status is not ModelStatus.IDLE:
            logger.debug("Model load already attempted (status=%s)", self._status.value)
            return
        self._status = ModelStatus.LOADING

        try:
            device = select_backend(self._backends)
        except BackendUnavailableError as exc:
            self._fail(str(exc))
            return

        try:
            # On timeout the worker thread is left to finish on its own and
            # its result is discarded.
            module = await asyncio.wait_for(
                asyncio.to_thread(self._read_artifact, device),
                timeout=self._timeout_s,
            )
            await asyncio.to_thread(self._warm_up, module, device)
        except asyncio.TimeoutError:
            self._fail("Failed to load model: Model loading timed out")
            return
        except Exception as exc:
            self._fail(f"Failed to load model: {exc}")
            return

        self._model = LoadedModel(module=module, device=device)
        self._status = ModelStatus.READY
        logger.info("Model loaded successfully from %s", self._path)

    def release(self) -> None:
        """Drop the model so its tensors can be freed."""
        if self._model is None:
            return
        device = self._model.device
        self._model = None
        if device.type == "cuda":
            torch.cuda.empty_cache()
        logger.info("Model released")
