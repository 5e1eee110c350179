"""CIFAR ResNet-20/32/44/56 models, training loop, and utilities."""

from . import config
from . import engine
from . import trainer
from .architectures import factory, layers, resnet

__all__ = [
    "config",
    "engine",
    "trainer",
    "factory",
    "layers",
    "resnet",
]
