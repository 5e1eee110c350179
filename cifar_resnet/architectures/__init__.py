"""ResNet-20/32/44/56 building blocks and model factory."""

from .layers import Conv2DBatchNorm, ZeroPadShortcut, build_shortcut
from .resnet import CifarResNet, ResidualBlock, ResNet20, ResNet32, ResNet44, ResNet56, resnet_for_depth
from .factory import build_model

__all__ = [
    "Conv2DBatchNorm",
    "ZeroPadShortcut",
    "build_shortcut",
    "CifarResNet",
    "ResidualBlock",
    "ResNet20",
    "ResNet32",
    "ResNet44",
    "ResNet56",
    "resnet_for_depth",
    "build_model",
]
