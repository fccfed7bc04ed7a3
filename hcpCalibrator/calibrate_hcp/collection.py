"""In-memory image collection receiving calibrated outputs."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from hcpCalibrator.calibrate_hcp.model import SpmImage


@dataclass(frozen=True)
class ProcessingLogEntry:
    """Record of a processing step that produced an image.

    Parameters:
        source_id: Identifier of the input image.
        output_id: Identifier of the produced image.
        function: Name of the processing function.
    """

    source_id: Optional[int]
    output_id: int
    function: str


class ImageCollection:
    """Ordered collection of images addressed by integer identifiers.

    Parameters:
        logger: Optional logger instance.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._images: Dict[int, SpmImage] = {}
        self._log: List[ProcessingLogEntry] = []
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._images)

    def ids(self) -> List[int]:
        """Return the identifiers in insertion order."""

        return list(self._images.keys())

    def add(self, image: SpmImage) -> int:
        """Add an image and return its identifier."""

        image_id = self._next_id
        self._next_id += 1
        self._images[image_id] = image
        self._logger.info("Added image %s '%s' to the collection.", image_id, image.title)
        return image_id

    def get(self, image_id: int) -> SpmImage:
        """Return the image stored under ``image_id``."""

        try:
            return self._images[image_id]
        except KeyError:
            raise KeyError(f"No image with id {image_id} in the collection.") from None

    def log_processing(self, source_id: Optional[int], output_id: int, function: str) -> None:
        """Append a processing log entry."""

        self._log.append(ProcessingLogEntry(source_id, output_id, function))

    def processing_log(self, image_id: Optional[int] = None) -> List[ProcessingLogEntry]:
        """Return processing log entries, optionally only those producing ``image_id``."""

        if image_id is None:
            return list(self._log)
        return [entry for entry in self._log if entry.output_id == image_id]
