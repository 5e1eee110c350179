"""CIFAR dataset registry, transforms, mixup and dataloader construction."""
