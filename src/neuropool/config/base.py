"""
Base Configuration Classes.

Every reservoir-level config inherits from BaseConfig so that device, dtype
and seed travel together with the structural parameters.

Author: Neuropool Project
Date: October 2026
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import torch


@dataclass
class BaseConfig:
    """Base configuration with common fields for all components.

    This provides standard fields that appear in every top-level config:
    - device: Hardware device (cpu/cuda)
    - dtype: Tensor data type
    - seed: Random seed for reproducibility
    """

    device: str = "cpu"
    """Device to run on: 'cpu', 'cuda', 'cuda:0', etc."""

    dtype: str = "float64"
    """Data type for state and weight tensors: 'float64' or 'float32'."""

    seed: Optional[int] = None
    """Seed used when no explicit random source is passed. None = entropy."""

    def get_torch_device(self) -> torch.device:
        """Get PyTorch device object."""
        return torch.device(self.device)

    def get_torch_dtype(self) -> torch.dtype:
        """Get PyTorch dtype object."""
        dtype_map = {
            "float32": torch.float32,
            "float64": torch.float64,
        }
        if self.dtype not in dtype_map:
            raise ValueError(
                f"Unknown dtype '{self.dtype}'. "
                f"Choose from: {list(dtype_map.keys())}"
            )
        return dtype_map[self.dtype]


__all__ = [
    "BaseConfig",
]
