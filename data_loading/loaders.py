import os
from typing import Tuple

import torch
from torch.utils.data import DataLoader, Dataset

from cifar_resnet.config import DataConfig, DataMetadata
from . import config
from . import datasets as ldd

DEFAULT_TRAIN_BATCH = 128
DEFAULT_EVAL_BATCH = 256


def _loader_options(data_cfg: DataConfig, device: torch.device) -> dict:
    num_workers = data_cfg.num_workers
    if num_workers is None:
        num_workers = (os.cpu_count() or 4) // 2

    options = {
        'num_workers': num_workers,
        'pin_memory': data_cfg.pin_memory if data_cfg.pin_memory is not None else device.type == 'cuda',
    }
    # these two are only accepted by DataLoader when workers are used
    if num_workers > 0:
        options['persistent_workers'] = data_cfg.persistent_workers
        if data_cfg.prefetch_factor is not None:
            options['prefetch_factor'] = data_cfg.prefetch_factor
    return options


def build_dataloaders(data_cfg: DataConfig, device: torch.device) -> Tuple[DataLoader, DataLoader, DataLoader, DataMetadata]:
    key = data_cfg.dataset_key.lower()
    bundle = ldd.load_dataset(key, root=data_cfg.root or "./data", val_split=data_cfg.val_split, augment=data_cfg.use_augment)

    options = _loader_options(data_cfg, device)
    print(f"Using {options['num_workers']} data loader workers.")

    def _loader(dataset: Dataset, batch_size: int, shuffle: bool) -> DataLoader:
        return DataLoader(dataset, batch_size=batch_size, shuffle=shuffle, drop_last=False, **options)

    eval_batch = data_cfg.val_batch_size or DEFAULT_EVAL_BATCH
    train_loader = _loader(bundle.train, data_cfg.batch_size or DEFAULT_TRAIN_BATCH, shuffle=True)
    val_loader = _loader(bundle.val, eval_batch, shuffle=False)
    test_loader = _loader(bundle.test, data_cfg.test_batch_size or DEFAULT_EVAL_BATCH, shuffle=False)

    num_classes = len(bundle.class_names) if bundle.class_names is not None else config.DATASET_REGISTRY[key].num_classes
    metadata = DataMetadata(
        dataset_key=key,
        num_classes=num_classes,
        input_channels=bundle.num_channels,
        input_size=bundle.image_size,
    )
    return train_loader, val_loader, test_loader, metadata
