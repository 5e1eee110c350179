from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

import torch
from torch.utils.data import Dataset
from torchvision import datasets

from . import transforms as custom_transforms

# (root, train, download, transform) -> Dataset, as the torchvision CIFAR classes take
DatasetFactory = Callable[..., Dataset]


@dataclass(frozen=True)
class DatasetConfig:
    key: str
    dataset_cls: DatasetFactory
    num_classes: int
    display_name: str
    default_val_split: int = 5_000
    augment_builder: Optional[Callable] = custom_transforms.cifar_augment
    default_augment: bool = True


@dataclass
class DatasetBundle:
    train: Dataset
    val: Dataset
    test: Dataset
    mean: torch.Tensor
    std: torch.Tensor
    image_size: int
    num_channels: int
    class_names: Optional[Sequence[str]]


def register_dataset(dataset_config: DatasetConfig) -> DatasetConfig:
    DATASET_REGISTRY[dataset_config.key] = dataset_config
    return dataset_config


DATASET_REGISTRY: Dict[str, DatasetConfig] = {}

register_dataset(DatasetConfig("cifar10", datasets.CIFAR10, num_classes=10, display_name="CIFAR-10"))
register_dataset(DatasetConfig("cifar100", datasets.CIFAR100, num_classes=100, display_name="CIFAR-100"))
