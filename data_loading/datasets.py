from __future__ import annotations

from typing import Callable, Optional, Sequence

import torch
from torch.utils.data import DataLoader, Dataset
from torchvision import transforms

from . import config
from . import transforms as custom_transforms

# Re-export for convenience
DatasetBundle = config.DatasetBundle
DatasetConfig = config.DatasetConfig


class TransformedSubset(Dataset):
    """A view over `indices` of a raw (PIL-yielding) dataset with its own transform.

    Lets the augmented train split and the plain validation split share one
    underlying dataset instance.
    """

    def __init__(self, dataset: Dataset, indices: Sequence[int], transform: Optional[Callable] = None):
        self.dataset = dataset
        self.indices = list(indices)
        self.transform = transform

    def __len__(self):
        return len(self.indices)

    def __getitem__(self, idx):
        image, label = self.dataset[self.indices[idx]]
        if self.transform is not None:
            image = self.transform(image)
        return image, label


def channel_stats(dataset: Dataset, batch_size: int = 512) -> tuple[torch.Tensor, torch.Tensor]:
    """Per-channel mean and std over every pixel of a tensor-yielding dataset."""
    total = None
    total_sq = None
    pixels = 0
    for images, _ in DataLoader(dataset, batch_size=batch_size, shuffle=False, num_workers=0):
        images = images.double()
        total_batch = images.sum(dim=(0, 2, 3))
        total_sq_batch = (images ** 2).sum(dim=(0, 2, 3))
        total = total_batch if total is None else total + total_batch
        total_sq = total_sq_batch if total_sq is None else total_sq + total_sq_batch
        pixels += images.size(0) * images.size(2) * images.size(3)

    mean = total / pixels
    var = (total_sq / pixels - mean ** 2).clamp(min=1e-8)
    return mean.float(), var.sqrt().float()


def load_dataset(
    name: str,
    *,
    root: str = "./data",
    val_split: Optional[int] = None,
    augment: Optional[bool] = None,
    download: bool = True,
    verbose: bool = True,
) -> DatasetBundle:
    """Load a registered dataset as train/val/test splits normalized with train-split stats.

    The last `val_split` training images form the validation set, which is never
    augmented and does not contribute to the normalization stats.
    """
    key = name.lower()
    if key not in config.DATASET_REGISTRY:
        raise ValueError(f"Unknown dataset '{name}'. Available: {sorted(config.DATASET_REGISTRY)}")
    dataset_config = config.DATASET_REGISTRY[key]

    train_full = dataset_config.dataset_cls(root=root, train=True, download=download, transform=None)
    test_raw = dataset_config.dataset_cls(root=root, train=False, download=download, transform=None)

    split = dataset_config.default_val_split if val_split is None else val_split
    n_train = len(train_full) - split
    if split <= 0 or n_train <= 0:
        raise ValueError(f"val_split must be in (0, {len(train_full)}), got {split}")
    train_indices = range(n_train)
    val_indices = range(n_train, len(train_full))

    mean, std = channel_stats(TransformedSubset(train_full, train_indices, transforms.ToTensor()))
    num_channels, image_size = TransformedSubset(train_full, [0], transforms.ToTensor())[0][0].shape[:2]

    eval_transform = custom_transforms.cifar_eval_transform(mean, std)
    use_augment = dataset_config.default_augment if augment is None else augment
    if use_augment and dataset_config.augment_builder is not None:
        train_transform = dataset_config.augment_builder(mean, std, image_size)
    else:
        train_transform = eval_transform

    bundle = DatasetBundle(
        train=TransformedSubset(train_full, train_indices, train_transform),
        val=TransformedSubset(train_full, val_indices, eval_transform),
        test=TransformedSubset(test_raw, range(len(test_raw)), eval_transform),
        mean=mean,
        std=std,
        image_size=int(image_size),
        num_channels=int(num_channels),
        class_names=getattr(train_full, "classes", None),
    )

    if verbose:
        print(f"{dataset_config.display_name}: train={len(bundle.train)} val={len(bundle.val)} test={len(bundle.test)}, "
              f"{bundle.num_channels}x{bundle.image_size}x{bundle.image_size}, augment={use_augment}")
        print(f"  mean={mean.tolist()} std={std.tolist()}")

    return bundle
