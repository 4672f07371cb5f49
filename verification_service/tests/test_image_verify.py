import asyncio
from io import BytesIO
from pathlib import Path

import pytest
import torch
from PIL import Image

from content_verifier.detection.preprocess import (
    decode_data_url,
    encode_data_url,
    is_image_type,
    preprocess_image,
)
from content_verifier.detection.verify import (
    NON_FINITE_MESSAGE,
    NOT_READY_MESSAGE,
    ImageVerifier,
    round_half_up,
    score_to_result,
)
from content_verifier.errors import ImageDecodeError
from content_verifier.inference.loader import ModelLoader


def _ready_loader(model_path: Path) -> ModelLoader:
    loader = ModelLoader(model_path, backends=("cpu",))
    asyncio.run(loader.load())
    assert loader.is_ready
    return loader


@pytest.mark.parametrize(
    "score, authentic, confidence",
    [
        (0.0, True, 100),
        (0.2, True, 80),
        (0.49, True, 51),
        (0.5, False, 50),
        (0.75, False, 25),
        (1.0, False, 0),
    ],
)
def test_score_to_result(score, authentic, confidence):
    result = score_to_result(score)
    assert result.is_authentic is authentic
    assert result.confidence == confidence
    assert result.error is None


def test_threshold_is_configurable():
    assert score_to_result(0.6, threshold=0.7).is_authentic is True
    assert score_to_result(0.6).is_authentic is False


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(49.4) == 49


def test_out_of_range_score_is_clamped():
    assert score_to_result(-0.5).confidence == 100
    assert score_to_result(2.5).confidence == 100


def test_preprocess_shape_and_range(make_png):
    batch = preprocess_image(make_png(color=(255, 255, 255)))
    assert batch.shape == (1, 224, 224, 3)
    assert batch.dtype == torch.float32
    assert torch.all(batch == 1.0)


def test_preprocess_uses_nearest_neighbour():
    img = Image.new("RGB", (2, 1))
    img.putpixel((0, 0), (0, 0, 0))
    img.putpixel((1, 0), (255, 255, 255))
    buf = BytesIO()
    img.save(buf, format="PNG")

    batch = preprocess_image(buf.getvalue(), size=8)
    # No interpolated greys.
    assert set(torch.unique(batch).tolist()) == {0.0, 1.0}


def test_preprocess_rejects_garbage():
    with pytest.raises(ImageDecodeError, match="Failed to load image"):
        preprocess_image(b"definitely not an image")


def test_data_url_helpers(make_png):
    data = make_png()
    url = encode_data_url(data, "image/png")
    assert url.startswith("data:image/png;base64,")
    assert decode_data_url(url) == (data, "image/png")

    with pytest.raises(ImageDecodeError):
        decode_data_url("https://example.com/cat.png")

    assert is_image_type("image/jpeg")
    assert not is_image_type("text/plain")
    assert not is_image_type(None)


def test_verify_gray_image(model_path: Path, make_png):
    verifier = ImageVerifier(_ready_loader(model_path))
    # 51 / 255 == 0.2, which is the mean pixel score of the test model.
    result = asyncio.run(verifier.verify(encode_data_url(make_png((51, 51, 51)), "image/png")))

    assert result.is_authentic is True
    assert result.confidence == 80
    assert result.error is None


def test_verify_white_image_is_suspicious(model_path: Path, make_png):
    verifier = ImageVerifier(_ready_loader(model_path))
    result = asyncio.run(
        verifier.verify(encode_data_url(make_png((255, 255, 255)), "image/png"))
    )

    assert result.is_authentic is False
    assert result.confidence == 0


def test_verify_without_image(model_path: Path):
    verifier = ImageVerifier(_ready_loader(model_path))
    result = asyncio.run(verifier.verify(None))

    assert result.is_authentic is False
    assert result.confidence == 0
    assert result.error == NOT_READY_MESSAGE


def test_verify_without_model(tmp_path: Path, make_png):
    loader = ModelLoader(tmp_path / "missing.pt", backends=("cpu",))
    asyncio.run(loader.load())

    verifier = ImageVerifier(loader)
    result = asyncio.run(verifier.verify(encode_data_url(make_png(), "image/png")))

    assert result.is_authentic is False
    assert result.confidence == 0
    assert result.error == NOT_READY_MESSAGE


def test_verify_undecodable_image(model_path: Path):
    verifier = ImageVerifier(_ready_loader(model_path))
    result = asyncio.run(verifier.verify(encode_data_url(b"not a png", "image/png")))

    assert result.is_authentic is False
    assert result.confidence == 0
    assert result.error.startswith("Failed to load image")


def test_verify_non_finite_score_is_a_failed_result(nan_model_path: Path, make_png):
    verifier = ImageVerifier(_ready_loader(nan_model_path))
    result = asyncio.run(verifier.verify(encode_data_url(make_png(), "image/png")))

    assert result.is_authentic is False
    assert result.confidence == 0
    assert result.error == NON_FINITE_MESSAGE
