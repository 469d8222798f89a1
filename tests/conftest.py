import os
from io import BytesIO

import pytest
from PIL import Image


def make_png(color=(255, 0, 0)):
    img = Image.new("RGB", (8, 8), color)
    output = BytesIO()
    img.save(output, format='PNG')
    return output.getvalue()


def write_tile(root, rel_path, data=None):
    path = os.path.join(str(root), *rel_path.split("/"))
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(make_png() if data is None else data)
    return path


@pytest.fixture
def map_dir(tmp_path):
    d = tmp_path / "tiles"
    d.mkdir()
    return d
