"""Utility functions for the image reader backend."""

import base64
import secrets
from datetime import datetime
import numpy as np
from PIL import Image


def generate_request_id() -> str:
    """Generate a unique recognition request ID.
    
    Format: req_{timestamp}_{random}
    
    Returns:
        str: Unique request identifier
    """
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    random_str = secrets.token_hex(4)
    return f"req_{timestamp}_{random_str}"


def normalize_mime_type(mime_type: str) -> str:
    """Lowercase a MIME type and drop any parameters (``; charset=...``)."""
    return mime_type.split(";", 1)[0].strip().lower()


def image_to_array(image: Image.Image) -> np.ndarray:
    """Convert PIL Image to numpy array.
    
    RGBA images keep their alpha channel; every other mode is converted
    to RGB.
    
    Args:
        image: PIL Image object
        
    Returns:
        np.ndarray: Image as numpy array (H, W, 3) or (H, W, 4)
    """
    if image.mode != 'RGBA':
        image = image.convert('RGB')
    return np.array(image)


def array_to_image(array: np.ndarray) -> Image.Image:
    """Convert numpy array to PIL Image.
    
    Args:
        array: Numpy array (RGB or RGBA)
        
    Returns:
        Image.Image: PIL Image object
    """
    return Image.fromarray(array.astype(np.uint8))


def to_data_uri(content: bytes, mime_type: str) -> str:
    """Encode bytes as a base64 ``data:`` URI."""
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"
