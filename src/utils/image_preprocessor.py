"""Image preprocessing for OCR on photographed and scanned course notes.

Phone photos of handouts arrive in colour, unevenly lit, slightly blurred
and often far larger than Tesseract needs.  A single preprocessing pass
fixes the common failure modes before the image reaches the OCR engine:

    1. grayscale      : drop colour information Tesseract does not use
    2. autocontrast   : stretch the histogram (faded photocopies, shadows)
    3. sharpen        : recover edges lost to camera shake
    4. fit            : shrink so neither side exceeds ``max_dimension``
"""

from __future__ import annotations

from PIL import Image, ImageFilter, ImageOps

DEFAULT_MAX_DIMENSION = 2000


class ImagePreprocessor:
    """Prepares study-material images for OCR.

    Parameters
    ----------
    max_dimension:
        Upper bound in pixels for the longest side after preprocessing.
        Smaller images are never upscaled.
    """

    def __init__(self, max_dimension: int = DEFAULT_MAX_DIMENSION) -> None:
        if max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        self._max_dimension = max_dimension

    @property
    def max_dimension(self) -> int:
        return self._max_dimension

    def prepare(self, image: Image.Image) -> Image.Image:
        """Run the full preprocessing pipeline and return a new grayscale image."""
        gray = ImageOps.grayscale(image)
        gray = ImageOps.autocontrast(gray)
        gray = gray.filter(ImageFilter.SHARPEN)
        return self.fit(gray)

    def fit(self, image: Image.Image) -> Image.Image:
        """Shrink *image* to fit inside ``max_dimension`` square, keeping aspect ratio."""
        width, height = image.size
        largest = max(width, height)
        if largest <= self._max_dimension:
            return image

        scale = self._max_dimension / largest
        new_size = (max(1, int(width * scale)), max(1, int(height * scale)))
        return image.resize(new_size, Image.LANCZOS)
