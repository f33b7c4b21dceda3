import io
from pathlib import Path

import pytest


class FakeCodec:
    """Codec over ``FAKE:<w>x<h>;<payload>`` bytes; records every encode."""

    def __init__(self, fail_formats=()):
        self.encoded = []
        self.probed = 0
        self.fail_formats = set(fail_formats)

    def probe(self, data):
        self.probed += 1
        if not data.startswith(b"FAKE:"):
            return None
        size = data[5:].split(b";", 1)[0]
        width, _, height = size.partition(b"x")
        try:
            width, height = int(width), int(height)
        except ValueError:
            return None
        if width <= 0 or height <= 0:
            return None
        return width, height

    def encode(self, data, width, image_format, destination: Path):
        if image_format in self.fail_formats:
            raise RuntimeError(f"encoder for {image_format} unavailable")
        src_width, src_height = self.probe(data)
        height = max(1, round(src_height * width / src_width))
        destination.write_bytes(f"FAKE:{width}x{height};{image_format}".encode())
        self.encoded.append((destination.name, width, height))
        return width, height


def fake_image(width, height, payload="img"):
    return f"FAKE:{width}x{height};{payload}".encode()


@pytest.fixture
def codec():
    return FakeCodec()


@pytest.fixture
def make_image():
    """Factory for fake image bytes; different payloads hash differently."""
    return fake_image


@pytest.fixture
def build_root(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def cache_dir(build_root):
    path = build_root / "public" / ".siena"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def png_bytes():
    """Real 64x32 RGBA PNG for exercising Pillow."""
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGBA", (64, 32), (200, 10, 10, 128)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_image_bytes():
    """Minimal valid PNG for testing (1x1 white pixel)."""
    import base64
    return base64.b64decode(
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR4"
        "nGP4z8BQDwAEgAF/pooBPQAAAABJRU5ErkJggg=="
    )


@pytest.fixture
def make_codec():
    return FakeCodec
