"""
Configuration for the distance transform.

A TransformConfig can be built directly, from a plain mapping, or from a YAML
file. The YAML layout groups the options in two sections:

    transform:
      scale: 10.0
      short_dtype: int16
      row_epsilon: 0
      band_epsilon: 1
      sentinel: null
    execution:
      backend: vectorized
      workers: 1
      device: cpu
"""

import logging
import math
from pathlib import Path
from typing import Any, Dict, Optional, Union

import torch
import yaml

logger = logging.getLogger(__name__)

BACKENDS = ("vectorized", "lines")

SHORT_DTYPES = {
    "int16": torch.int16,
    "int32": torch.int32,
    "uint8": torch.uint8,
}


class TransformConfig:
    """
    Options controlling how the transform runs and how it finishes.

    Attributes:
        scale: Factor applied to distances for the scaled fixed-point output
        short_dtype: Name of the integer dtype used for the scaled output
        row_epsilon: Extra lower reach of the search window in the row pass
        band_epsilon: Extra lower reach of the search window in the band pass
        sentinel: Squared distance given to lines without foreground
                  (None selects B^2 + R^2 + C^2 for each volume)
        backend: "vectorized" (whole-axis torch sweeps) or "lines"
        workers: Number of threads used by the "lines" backend
        device: Torch device the field is computed on
    """

    def __init__(
        self,
        scale: float = 10.0,
        short_dtype: str = "int16",
        row_epsilon: int = 0,
        band_epsilon: int = 1,
        sentinel: Optional[float] = None,
        backend: str = "vectorized",
        workers: int = 1,
        device: str = "cpu",
    ):
        self.scale = float(scale)
        self.short_dtype = str(short_dtype)
        self.row_epsilon = int(row_epsilon)
        self.band_epsilon = int(band_epsilon)
        self.sentinel = None if sentinel is None else float(sentinel)
        self.backend = str(backend)
        self.workers = int(workers)
        self.device = str(device)
        self.validate()

    def validate(self) -> None:
        if self.scale <= 0:
            raise ValueError(f"scale must be positive, got {self.scale}")
        if self.short_dtype not in SHORT_DTYPES:
            raise ValueError(
                f"short_dtype must be one of {sorted(SHORT_DTYPES)}, got {self.short_dtype!r}"
            )
        if self.row_epsilon < 0 or self.band_epsilon < 0:
            raise ValueError("window epsilons must be non-negative")
        if self.sentinel is not None and not 0 < self.sentinel < math.inf:
            raise ValueError(f"sentinel must be positive and finite, got {self.sentinel}")
        if self.backend not in BACKENDS:
            raise ValueError(f"backend must be one of {BACKENDS}, got {self.backend!r}")
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")

    @property
    def output_dtype(self) -> torch.dtype:
        """Torch dtype of the scaled fixed-point output."""
        return SHORT_DTYPES[self.short_dtype]

    @classmethod
    def from_dict(cls, config: Dict[str, Any]) -> "TransformConfig":
        """
        Build a config from a mapping laid out like the YAML file.

        Args:
            config: Mapping with optional "transform" and "execution" sections

        Returns:
            The populated TransformConfig
        """
        config = config or {}
        transform = config.get("transform", {}) or {}
        execution = config.get("execution", {}) or {}

        return cls(
            scale=transform.get("scale", 10.0),
            short_dtype=transform.get("short_dtype", "int16"),
            row_epsilon=transform.get("row_epsilon", 0),
            band_epsilon=transform.get("band_epsilon", 1),
            sentinel=transform.get("sentinel", None),
            backend=execution.get("backend", "vectorized"),
            workers=execution.get("workers", 1),
            device=execution.get("device", "cpu"),
        )

    @classmethod
    def load_config(cls, config_path: Union[str, Path]) -> "TransformConfig":
        config_path = Path(config_path)
        with open(config_path, "r") as f:
            config = yaml.safe_load(f)
        logger.info(f"Loaded transform config from {config_path}")
        return cls.from_dict(config)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "transform": {
                "scale": self.scale,
                "short_dtype": self.short_dtype,
                "row_epsilon": self.row_epsilon,
                "band_epsilon": self.band_epsilon,
                "sentinel": self.sentinel,
            },
            "execution": {
                "backend": self.backend,
                "workers": self.workers,
                "device": self.device,
            },
        }

    def __repr__(self) -> str:
        return (
            f"TransformConfig(scale={self.scale}, short_dtype={self.short_dtype!r}, "
            f"row_epsilon={self.row_epsilon}, band_epsilon={self.band_epsilon}, "
            f"sentinel={self.sentinel}, backend={self.backend!r}, "
            f"workers={self.workers}, device={self.device!r})"
        )
