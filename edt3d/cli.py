#!/usr/bin/env python
"""
Compute the Euclidean distance transform of a volume file.

Examples:
    edt3d mask.npy distances.npy
    edt3d scan.tif distances.tif --kind short --threshold 170
    edt3d mask.npy distances.npy --config edt.yaml --preview preview.png
"""

import argparse
import logging
import sys
import time
from pathlib import Path

import numpy as np
import tifffile
import yaml

from edt3d.config import TransformConfig
from edt3d.core.distance_transform import OutputKind, euclidean_distance_3d
from edt3d.errors import DistanceTransformError

logger = logging.getLogger(__name__)

TIFF_SUFFIXES = (".tif", ".tiff")


def load_volume(path, threshold=None):
    """
    Load a volume from a .npy or .tif file.

    Args:
        path: Path to the volume
        threshold: If given, voxels >= threshold become foreground

    Returns:
        numpy array of the volume (boolean when thresholded)
    """
    path = Path(path)
    if path.suffix.lower() in TIFF_SUFFIXES:
        volume = tifffile.imread(str(path))
    elif path.suffix.lower() == ".npy":
        volume = np.load(path)
    else:
        raise ValueError(f"Unsupported volume format: {path.suffix}")

    logger.info(f"Loaded volume {path} with shape {volume.shape} and dtype {volume.dtype}")
    if threshold is not None:
        volume = volume >= threshold
        logger.info(f"Thresholded at {threshold}: {int(volume.sum())} foreground voxels")
    return volume


def save_field(path, field):
    path = Path(path)
    if path.suffix.lower() in TIFF_SUFFIXES:
        tifffile.imwrite(str(path), field)
    elif path.suffix.lower() == ".npy":
        np.save(path, field)
    else:
        raise ValueError(f"Unsupported output format: {path.suffix}")
    logger.info(f"Saved distance field to {path}")


def build_parser():
    parser = argparse.ArgumentParser(description="Exact 3D Euclidean distance transform of a binary volume")
    parser.add_argument("input", help="Input volume (.npy, .tif or .tiff)")
    parser.add_argument("output", help="Output distance field (.npy, .tif or .tiff)")
    parser.add_argument("--kind", default="float", choices=[k.value for k in OutputKind],
                        help="Output representation: float distances or distances x10 as int16")
    parser.add_argument("--threshold", type=float, default=None,
                        help="Binarise an intensity volume as volume >= threshold")
    parser.add_argument("--config", default=None, help="YAML transform config")
    parser.add_argument("--backend", default=None, choices=["vectorized", "lines"],
                        help="Override the configured backend")
    parser.add_argument("--workers", type=int, default=None, help="Worker threads for the lines backend")
    parser.add_argument("--preview", default=None, help="Save a PNG with central slices of the result")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    try:
        config = TransformConfig.load_config(args.config) if args.config else TransformConfig()
        if args.backend is not None:
            config.backend = args.backend
        if args.workers is not None:
            config.workers = args.workers
        config.validate()
        logger.info(f"Using {config}")

        volume = load_volume(args.input, args.threshold)
        start = time.time()
        field = euclidean_distance_3d(volume, args.kind, config=config)
        logger.info(f"Distance transform finished in {time.time() - start:.2f}s, max value {field.max().item()}")

        result = field.cpu().numpy()
        save_field(args.output, result)
    except (DistanceTransformError, ValueError, OSError, yaml.YAMLError) as e:
        logger.error(f"Distance transform failed: {e}")
        return 1

    if args.preview:
        from edt3d.visualization import save_distance_preview
        save_distance_preview(result, args.preview)
        logger.info(f"Saved preview to {args.preview}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
