import asyncio
import time
from pathlib import Path

import pytest
import torch

from content_verifier.errors import BackendUnavailableError, ModelNotReadyError
from content_verifier.inference.loader import ModelLoader, select_backend
from content_verifier.registry.filesystem_store import FilesystemModelRegistry
from content_verifier.schemas import ModelStatus


class SlowModelLoader(ModelLoader):
    def _read_artifact(self, device):
        time.sleep(0.5)
        return super()._read_artifact(device)


def test_select_backend_falls_back_to_cpu():
    device = select_backend(("not-a-device", "cpu"))
    assert device == torch.device("cpu")


def test_select_backend_raises_when_nothing_is_usable():
    with pytest.raises(BackendUnavailableError, match="Failed to initialize torch backend"):
        select_backend(("not-a-device", "also-not-a-device"))


def test_load_publishes_model(model_path: Path):
    loader = ModelLoader(model_path, backends=("cpu",))
    assert loader.status is ModelStatus.IDLE

    asyncio.run(loader.load())

    assert loader.status is ModelStatus.READY
    assert loader.is_ready
    assert loader.error is None
    assert loader.backend == "cpu"
    assert loader.model.predict(torch.ones(1, 224, 224, 3)) == pytest.approx(1.0)


def test_missing_artifact_is_terminal(tmp_path: Path):
    loader = ModelLoader(tmp_path / "missing.pt", backends=("cpu",))
    asyncio.run(loader.load())

    assert loader.status is ModelStatus.ERROR
    assert loader.error.startswith("Failed to load model: ")
    assert not loader.is_ready
    with pytest.raises(ModelNotReadyError):
        _ = loader.model


def test_backend_failure_is_terminal(model_path: Path):
    loader = ModelLoader(model_path, backends=("not-a-device",))
    asyncio.run(loader.load())

    assert loader.status is ModelStatus.ERROR
    assert loader.error == "Failed to initialize torch backend"


def test_load_timeout_is_terminal_and_not_retried(model_path: Path):
    loader = SlowModelLoader(model_path, backends=("cpu",), timeout_s=0.05)
    asyncio.run(loader.load())

    assert loader.status is ModelStatus.ERROR
    assert loader.error == "Failed to load model: Model loading timed out"

    # A second attempt does nothing, even though the artefact is loadable.
    asyncio.run(loader.load())
    assert loader.status is ModelStatus.ERROR
    assert not loader.is_ready


def test_release_drops_model(model_path: Path):
    loader = ModelLoader(model_path, backends=("cpu",))
    asyncio.run(loader.load())
    loader.release()

    assert not loader.is_ready
    assert loader.backend is None


def test_registry_resolves_artifact_path(tmp_path: Path):
    registry = FilesystemModelRegistry(root=tmp_path)
    assert registry.root == tmp_path
    assert registry.resolve("classifier") == tmp_path / "classifier.pt"
    assert registry.resolve("classifier.pt") == tmp_path / "classifier.pt"
