#!/usr/bin/env python3
"""
Descriptor Preparation for the Live Face Recognition Demo
Builds the labeled face descriptor file from a directory of training images

Usage:
    python prepare_descriptors.py --data-dir data --output assets/descriptors.json

Expected layout:
    data/
        Ana/
            1.jpg
            2.jpg
        Bruno/
            1.jpg

This script:
1. Loads the InsightFace detection and recognition models
2. Walks every label directory (directory name = label) in name order
3. Extracts one face descriptor per image (the highest-scoring face)
4. Writes all records to a single JSON file
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Tuple, Union

import cv2

from config import DESCRIPTORS_OUTPUT, MODEL_NAME, MODELS_ROOT, TRAINING_DATA_DIR
from descriptors import DescriptorRecord, record_for, write_descriptor_file
from detector import DESCRIPTOR_MODULES, FaceDetector, ModelLoadError

logger = logging.getLogger(__name__)


@dataclass
class PreparationReport:
    records: List[DescriptorRecord] = field(default_factory=list)
    processed: int = 0
    skipped: List[Path] = field(default_factory=list)

    @property
    def labels(self) -> List[str]:
        return list(dict.fromkeys(r.label for r in self.records))


def iter_training_images(root: Union[str, Path]) -> Iterator[Tuple[str, Path]]:
    """Yield (label, image_path) for every file in every label directory"""
    root = Path(root)
    directories = sorted(p for p in root.iterdir() if p.is_dir())
    logger.info(f"Found {len(directories)} label directories in {root}")

    for directory in directories:
        logger.info(f"Processing directory: {directory.name}")
        for image_path in sorted(p for p in directory.iterdir() if p.is_file()):
            yield directory.name, image_path


def prepare_descriptors(root: Union[str, Path], detector: FaceDetector) -> PreparationReport:
    """Extract one descriptor per training image that contains a face"""
    root = Path(root)
    if not root.is_dir():
        raise FileNotFoundError(f"Training data directory not found: {root}")

    report = PreparationReport()

    for label, image_path in iter_training_images(root):
        report.processed += 1

        image = cv2.imread(str(image_path))
        if image is None:
            logger.warning(f"Could not read image: {image_path}")
            report.skipped.append(image_path)
            continue

        detection = detector.detect_single(image)
        if detection is None:
            logger.warning(f"No face detected in {image_path}")
            report.skipped.append(image_path)
            continue

        report.records.append(record_for(label, detection.descriptor))
        logger.info(f"Extracted descriptor from {image_path.relative_to(root)} for: {label}")

    return report


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Build the face descriptor file from labeled images")
    parser.add_argument('--data-dir', default=TRAINING_DATA_DIR,
                        help='Directory with one subdirectory of images per label')
    parser.add_argument('--output', default=DESCRIPTORS_OUTPUT,
                        help='Path of the JSON descriptor file to write')
    parser.add_argument('--model', default=MODEL_NAME, help='InsightFace model pack name')
    parser.add_argument('--models-root', default=MODELS_ROOT,
                        help='Directory containing the InsightFace model packs')
    return parser.parse_args(argv)


def main(argv=None):
    """Main preparation routine"""
    logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
    args = parse_args(argv)

    logger.info("=== Face Descriptor Preparation ===")

    try:
        detector = FaceDetector(model_name=args.model, models_root=args.models_root,
                                allowed_modules=DESCRIPTOR_MODULES)
    except ModelLoadError as e:
        logger.error(f"Fatal: {e}")
        return 1

    try:
        report = prepare_descriptors(args.data_dir, detector)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1

    write_descriptor_file(report.records, args.output)

    logger.info(f"Processed {report.processed} images: {len(report.records)} descriptors "
                f"for {len(report.labels)} labels, {len(report.skipped)} skipped")
    for path in report.skipped:
        logger.info(f"  - skipped {path}")

    logger.info("=== Descriptor preparation complete ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
