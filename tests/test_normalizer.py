"""Unit tests for image normalization."""

import io
import pytest
import numpy as np
from PIL import Image

from core.errors import DecodeError, EncodeError
from ingestion.file_handler import SourceImage
from preprocessing.normalizer import (
    ImageNormalizer,
    remap_contrast,
    target_size,
    to_grayscale,
)


class TestTargetSize:
    """Test upscale dimension computation."""
    
    @pytest.mark.parametrize("width,height", [(1, 1), (2, 3), (7, 5), (101, 33), (640, 480)])
    def test_floor_of_one_and_a_half(self, width, height):
        """Dimensions are floor(W * 1.5) x floor(H * 1.5)."""
        assert target_size(width, height) == (int(width * 1.5), int(height * 1.5))
    
    def test_odd_dimensions_round_down(self):
        assert target_size(3, 5) == (4, 7)


class TestGrayscale:
    """Test luma grayscale conversion."""
    
    def test_channels_equal(self):
        """Every pixel has R == G == B after conversion."""
        rng = np.random.default_rng(0)
        pixels = rng.integers(0, 256, (12, 9, 3), dtype=np.uint8)
        gray = to_grayscale(pixels)
        
        assert np.array_equal(gray[..., 0], gray[..., 1])
        assert np.array_equal(gray[..., 1], gray[..., 2])
    
    def test_idempotent(self):
        """Re-applying grayscale to a grayscale raster changes nothing."""
        rng = np.random.default_rng(1)
        pixels = rng.integers(0, 256, (16, 16, 3), dtype=np.uint8)
        once = to_grayscale(pixels)
        
        assert np.array_equal(to_grayscale(once), once)
    
    def test_every_gray_level_is_a_fixed_point(self):
        levels = np.arange(256, dtype=np.uint8)
        pixels = np.stack([levels, levels, levels], axis=-1).reshape(16, 16, 3)
        
        assert np.array_equal(to_grayscale(pixels), pixels)
    
    def test_luma_weights_round_half_up(self):
        # 0.299*200 + 0.587*100 + 0.114*50 = 124.2
        pixels = np.array([[[200, 100, 50]]], dtype=np.uint8)
        assert to_grayscale(pixels)[0, 0, 0] == 124
        # 0.299*1 + 0.587*1 + 0.114*0 = 0.886 -> 1
        pixels = np.array([[[1, 1, 0]]], dtype=np.uint8)
        assert to_grayscale(pixels)[0, 0, 0] == 1
    
    def test_alpha_untouched(self):
        pixels = np.array([[[255, 0, 0, 17], [0, 255, 0, 200]]], dtype=np.uint8)
        gray = to_grayscale(pixels)
        
        assert gray[0, 0, 3] == 17
        assert gray[0, 1, 3] == 200


class TestContrastRemap:
    """Test the fixed contrast remap."""
    
    def test_reference_values(self):
        values = np.array([0, 127, 128, 255], dtype=np.uint8)
        assert remap_contrast(values).tolist() == [30, 157, 98, 225]
    
    def test_bounded(self):
        """Every input in [0, 255] maps into [0, 255]."""
        remapped = remap_contrast(np.arange(256)).astype(int)
        
        assert remapped.min() >= 0
        assert remapped.max() <= 255
    
    def test_dark_up_light_down(self):
        remapped = remap_contrast(np.arange(256)).astype(int)
        
        assert np.all(remapped[:128] == np.arange(128) + 30)
        assert np.all(remapped[128:] == np.arange(128, 256) - 30)


class TestImageNormalizer:
    """Test the full normalization pipeline."""
    
    @pytest.mark.parametrize("size", [(1, 1), (3, 5), (10, 7), (33, 20)])
    def test_output_dimensions(self, make_source, size):
        raster = ImageNormalizer().normalize(make_source(size=size))
        
        assert (raster.width, raster.height) == target_size(*size)
        assert raster.pixels.shape[:2] == (raster.height, raster.width)
        assert raster.source_size == size
    
    def test_solid_color_pixels(self, make_source):
        """(200, 100, 50) -> luma 124 -> remapped 154 on every channel."""
        raster = ImageNormalizer().normalize(make_source(color=(200, 100, 50)))
        
        assert raster.pixels.shape[2] == 3
        assert np.all(raster.pixels == 154)
    
    def test_light_background_darkened(self, make_source):
        raster = ImageNormalizer().normalize(make_source(color=(255, 255, 255)))
        assert np.all(raster.pixels == 225)
    
    def test_true_grayscale_output(self, make_source):
        rng = np.random.default_rng(2)
        image = Image.fromarray(rng.integers(0, 256, (20, 30, 3), dtype=np.uint8))
        buffer = io.BytesIO()
        image.save(buffer, format='PNG')
        source = SourceImage(content=buffer.getvalue(), mime_type='image/png')
        
        pixels = ImageNormalizer().normalize(source).pixels
        
        assert np.array_equal(pixels[..., 0], pixels[..., 1])
        assert np.array_equal(pixels[..., 1], pixels[..., 2])
    
    def test_alpha_preserved(self, make_source):
        raster = ImageNormalizer().normalize(
            make_source(mode='RGBA', color=(10, 20, 30, 77))
        )
        
        assert raster.has_alpha
        assert np.all(raster.pixels[..., 3] == 77)
        # 0.299*10 + 0.587*20 + 0.114*30 = 18.15 -> 18 -> 48
        assert np.all(raster.pixels[..., :3] == 48)
    
    @pytest.mark.parametrize("fmt,mime_type", [
        ('JPEG', 'image/jpeg'),
        ('GIF', 'image/gif'),
        ('BMP', 'image/bmp'),
        ('WEBP', 'image/webp'),
    ])
    def test_supported_containers(self, make_source, fmt, mime_type):
        raster = ImageNormalizer().normalize(make_source(size=(6, 4), fmt=fmt, mime_type=mime_type))
        assert (raster.width, raster.height) == (9, 6)
    
    def test_png_transport(self, make_source):
        raster = ImageNormalizer().normalize(make_source(size=(4, 4)))
        
        with Image.open(io.BytesIO(raster.png_bytes)) as decoded:
            assert decoded.format == 'PNG'
            assert decoded.size == (6, 6)
        assert raster.data_uri.startswith("data:image/png;base64,")
    
    def test_pixels_read_only(self, make_source):
        raster = ImageNormalizer().normalize(make_source())
        
        assert not raster.pixels.flags.writeable
        with pytest.raises(ValueError):
            raster.pixels[0, 0, 0] = 1
    
    def test_corrupt_bytes_raise_decode_error(self):
        source = SourceImage(content=b"definitely not an image", mime_type='image/png')
        
        with pytest.raises(DecodeError):
            ImageNormalizer().normalize(source)
    
    def test_truncated_png_raises_decode_error(self, make_source):
        source = make_source(size=(50, 50))
        truncated = SourceImage(content=source.content[:40], mime_type='image/png')
        
        with pytest.raises(DecodeError):
            ImageNormalizer().normalize(truncated)
    
    def test_tiff_labelled_png_raises_decode_error(self, make_source):
        """Containers outside JPEG/PNG/GIF/BMP/WebP never reach a decoder."""
        source = make_source(fmt='TIFF', mime_type='image/png')

        with pytest.raises(DecodeError):
            ImageNormalizer().normalize(source)

    def test_content_must_match_declared_type(self, make_source):
        """PNG bytes declared as JPEG are rejected."""
        source = make_source(fmt='PNG', mime_type='image/jpeg')

        with pytest.raises(DecodeError) as exc_info:
            ImageNormalizer().normalize(source)
        assert exc_info.value.detail["mime_type"] == 'image/jpeg'

    def test_alias_mime_type_accepted(self, make_source):
        raster = ImageNormalizer().normalize(make_source(size=(4, 4), fmt='JPEG', mime_type='image/jpg'))
        assert (raster.width, raster.height) == (6, 6)

    def test_encode_failure_raises_encode_error(self, make_source, monkeypatch):
        def broken(array):
            raise OSError("disk full")
        monkeypatch.setattr("preprocessing.normalizer.array_to_image", broken)
        
        with pytest.raises(EncodeError):
            ImageNormalizer().normalize(make_source())


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
