import logging
from typing import Any, Dict, Optional, Tuple

from config import settings, ACCEPTED_MIME_TYPES
from .errors import ImageTooLarge, ImageTooSmall, UnsupportedImageType
from .models import CapturedImage

logger = logging.getLogger(__name__)


class QualityGate:
    """
    Local pre-upload check of captured images.

    Rejects captures that are obviously unusable (too small to be a readable
    photo) or that the backend is guaranteed to refuse (over the upload
    limit). Pure and synchronous: nothing here touches the network.
    """

    def __init__(self, min_bytes: Optional[int] = None, max_bytes: Optional[int] = None):
        self.min_bytes = settings.MIN_IMAGE_BYTES if min_bytes is None else min_bytes
        self.max_bytes = settings.MAX_IMAGE_BYTES if max_bytes is None else max_bytes
        if self.min_bytes > self.max_bytes:
            raise ValueError(f"min_bytes ({self.min_bytes}) exceeds max_bytes ({self.max_bytes})")

    def check_min_size(self, image: CapturedImage) -> Tuple[bool, Optional[str]]:
        """Check the image is big enough to be a usable capture"""
        if image.size < self.min_bytes:
            return False, f"Image too small ({image.size} < {self.min_bytes} bytes)"
        return True, None

    def check_max_size(self, image: CapturedImage) -> Tuple[bool, Optional[str]]:
        """Check the image fits under the upload limit"""
        if image.size > self.max_bytes:
            return False, f"Image too large ({image.size} > {self.max_bytes} bytes)"
        return True, None

    def check_mime(self, image: CapturedImage) -> Tuple[bool, Optional[str]]:
        if image.mime.lower() not in ACCEPTED_MIME_TYPES:
            return False, f"Unsupported image type ({image.mime})"
        return True, None

    def evaluate(self, image: CapturedImage) -> Dict[str, Any]:
        """
        Evaluate the image and return an assessment without raising
        Returns dict with accepted, signals and recommended_action
        """
        signals = []
        for check in (self.check_min_size, self.check_max_size, self.check_mime):
            ok, msg = check(image)
            if not ok:
                signals.append(msg)

        return {
            "accepted": not signals,
            "size": image.size,
            "signals": signals,
            "recommended_action": "proceed" if not signals else "retake",
        }

    def admit(self, image: CapturedImage) -> CapturedImage:
        """Return the image unchanged if it may be uploaded, raise ValidationError otherwise"""
        ok, msg = self.check_min_size(image)
        if not ok:
            logger.info("Quality gate rejected capture: %s", msg)
            raise ImageTooSmall(size=image.size, limit=self.min_bytes)

        ok, msg = self.check_max_size(image)
        if not ok:
            logger.info("Quality gate rejected capture: %s", msg)
            raise ImageTooLarge(size=image.size, limit=self.max_bytes)

        ok, msg = self.check_mime(image)
        if not ok:
            logger.info("Quality gate rejected capture: %s", msg)
            raise UnsupportedImageType(image.mime)

        return image
