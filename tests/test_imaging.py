import cv2
import numpy as np
import pytest

from core.errors import EmptyCropError, ImageDecodeError
from core.models import Region
from modules.frame import Frame
from modules.imaging import crop_region, decode_image, frame_from_array, rotate


def test_rotate_quarter_turns():
    img = np.arange(6, dtype=np.uint8).reshape(2, 3)
    assert rotate(img, 0) is img
    r90 = rotate(img, 90)
    assert r90.shape == (3, 2)
    assert r90[0, 0] == img[1, 0]
    assert np.array_equal(rotate(img, 180), img[::-1, ::-1])
    assert np.array_equal(rotate(img, 270), np.rot90(img))
    with pytest.raises(ValueError):
        rotate(img, 45)


def test_crop_clamps_to_bounds():
    img = np.zeros((50, 50, 3), dtype=np.uint8)
    crop = crop_region(img, Region(x=40, y=-5, width=20, height=20))
    assert crop.shape == (15, 10, 3)


def test_crop_margin_and_copy():
    img = np.zeros((100, 100), dtype=np.uint8)
    crop = crop_region(img, Region(x=40, y=40, width=20, height=20), margin=0.5)
    assert crop.shape == (40, 40)
    crop[:] = 255
    assert img.max() == 0


def test_crop_outside_raises():
    img = np.zeros((10, 10), dtype=np.uint8)
    with pytest.raises(EmptyCropError):
        crop_region(img, Region(x=20, y=20, width=5, height=5))


def test_decode_returns_rgb(tmp_path):
    rgb = np.zeros((4, 4, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    ok, buf = cv2.imencode(".png", cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR))
    assert ok
    decoded = decode_image(buf.tobytes())
    assert np.array_equal(decoded, rgb)
    path = tmp_path / "red.png"
    path.write_bytes(buf.tobytes())
    assert np.array_equal(decode_image(path), rgb)
    assert np.array_equal(decode_image(buf.ravel()), rgb)


def test_decode_errors(tmp_path):
    with pytest.raises(ImageDecodeError):
        decode_image(b"")
    with pytest.raises(ImageDecodeError):
        decode_image(tmp_path / "missing.png")


def test_frame_is_read_only_and_released_once():
    calls = []
    img = np.zeros((4, 6, 3), dtype=np.uint8)
    frame = frame_from_array(img, rotation=270, on_release=lambda: calls.append(1))
    assert (frame.width, frame.height) == (6, 4)
    assert frame.upright().shape == (6, 4, 3)
    with pytest.raises(ValueError):
        frame.image[0, 0, 0] = 1
    img[0, 0, 0] = 7
    assert frame.image[0, 0, 0] == 7
    with frame:
        pass
    frame.close()
    assert calls == [1]
    assert frame.closed


def test_frame_rejects_odd_rotation():
    with pytest.raises(ValueError):
        Frame(np.zeros((2, 2), dtype=np.uint8), rotation=30)
