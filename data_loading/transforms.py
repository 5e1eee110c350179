import torch
from torchvision import transforms


def cifar_augment(mean: torch.Tensor, std: torch.Tensor, image_size: int, random_erasing: bool = False) -> transforms.Compose:
    """Padded random crop + horizontal flip, the CIFAR augmentation from the ResNet paper."""
    mean_list = mean.tolist()
    std_list = std.tolist()
    steps = [
        transforms.RandomCrop(image_size, padding=4),
        transforms.RandomHorizontalFlip(),
        transforms.ToTensor(),
    ]
    if random_erasing:
        steps.append(transforms.RandomErasing(p=0.5, scale=(0.02, 0.08), ratio=(0.8, 1.25), value="random"))
    steps.append(transforms.Normalize(mean_list, std_list))
    return transforms.Compose(steps)


def cifar_eval_transform(mean: torch.Tensor, std: torch.Tensor) -> transforms.Compose:
    return transforms.Compose([
        transforms.ToTensor(),
        transforms.Normalize(mean.tolist(), std.tolist()),
    ])
