"""
Residual networks for 32x32 CIFAR images.

Original paper:
    "Deep Residual Learning for Image Recognition"
    Kaiming He, Xiangyu Zhang, Shaoqing Ren, Jian Sun
    https://arxiv.org/abs/1512.03385

Each of the three stages holds a single residual block whose main path is a
stack of conv + BN + ReLU layers; the depth of the network selects how many
layers that stack has. The shortcut is a 1x1 projection (option B) unless
the zero-pad variant (option A) is requested.
"""

import torch
import torch.nn as nn

from .layers import Conv2DBatchNorm, build_shortcut


# conv layers inside each residual block, by network depth
LAYERS_PER_BLOCK = {
    20: 2,
    32: 4,
    44: 6,
    56: 8,
}

STAGE_CHANNELS = (16, 32, 64)
IMAGE_SIZE = 32


class ResidualBlock(nn.Module):
    """
    ResidualBlock(in_channels, out_channels, num_layers, kernel_size=3, stride=2, shortcut="projection")
    A stack of `num_layers` Conv2DBatchNorm layers, each followed by ReLU, whose output
    is added to the shortcut branch before a final ReLU. Only the first layer changes
    the channel count and applies the stride.
    Forward:
        x (torch.Tensor): Input tensor of shape (N, in_channels, H, W).
    Returns:
        torch.Tensor: Output tensor of shape (N, out_channels, ceil(H / stride), ceil(W / stride)).
    """

    def __init__(self, in_channels, out_channels, num_layers, kernel_size=3, stride=2, shortcut="projection"):

        super(ResidualBlock, self).__init__()

        if num_layers < 1:
            raise ValueError(f"A residual block needs at least one layer, got {num_layers}.")

        layers = [Conv2DBatchNorm(in_channels, out_channels, kernel_size=kernel_size, stride=stride, padding="same")]
        for _ in range(num_layers - 1):
            layers.append(Conv2DBatchNorm(out_channels, out_channels, kernel_size=kernel_size, padding="same"))
        self.layers = nn.ModuleList(layers)

        self.shortcut = build_shortcut(shortcut, in_channels, out_channels, stride=stride)
        self.relu = nn.ReLU()

    def forward(self, x):
        out = x
        for layer in self.layers:
            out = self.relu(layer(out))

        return self.relu(out + self.shortcut(x))


class CifarResNet(nn.Module):
    """Stem, three single-block stages (16, 32, 64 channels), 8x8 average pool, dense + softmax."""

    def __init__(self, depth: int, n_classes: int = 10, in_channels: int = 3, shortcut: str = "projection"):
        super(CifarResNet, self).__init__()

        if depth not in LAYERS_PER_BLOCK:
            raise ValueError(f"Unsupported ResNet depth {depth}. Available: {sorted(LAYERS_PER_BLOCK)}")

        self.depth = depth
        self.n_classes = n_classes
        self.shortcut_kind = shortcut
        num_layers = LAYERS_PER_BLOCK[depth]
        c1, c2, c3 = STAGE_CHANNELS

        self.relu = nn.ReLU()

        # STEM
        self.input_layer = Conv2DBatchNorm(in_channels, c1, kernel_size=3, padding="same")

        # STAGES: 32x32 -> 32x32 -> 16x16 -> 8x8
        self.block1 = ResidualBlock(c1, c1, num_layers, stride=1, shortcut=shortcut)
        self.block2 = ResidualBlock(c1, c2, num_layers, stride=2, shortcut=shortcut)
        self.block3 = ResidualBlock(c2, c3, num_layers, stride=2, shortcut=shortcut)

        # HEAD
        self.avgpool = nn.AvgPool2d(kernel_size=8, stride=8)
        self.flatten = nn.Flatten()
        self.classifier = nn.Linear(in_features=c3, out_features=n_classes)
        self.softmax = nn.Softmax(dim=1)

        for m in self.modules():
            if isinstance(m, nn.Conv2d):
                nn.init.kaiming_normal_(m.weight, mode='fan_out', nonlinearity='relu')
                if getattr(m, 'bias', None) is not None:
                    nn.init.zeros_(m.bias)
            elif isinstance(m, nn.BatchNorm2d):
                nn.init.constant_(m.weight, 1)
                nn.init.constant_(m.bias, 0)
            elif isinstance(m, nn.Linear):
                nn.init.normal_(m.weight, 0, 0.01)
                if getattr(m, 'bias', None) is not None:
                    nn.init.zeros_(m.bias)

    def forward(self, x: torch.Tensor, return_logits: bool = False) -> torch.Tensor:
        """
        Returns class probabilities of shape (N, n_classes).
        If return_logits=True, returns the pre-softmax scores instead (use these with
        CrossEntropyLoss).
        """
        if x.dim() != 4 or tuple(x.shape[-2:]) != (IMAGE_SIZE, IMAGE_SIZE):
            raise ValueError(
                f"Expected input of shape (N, C, {IMAGE_SIZE}, {IMAGE_SIZE}), got {tuple(x.shape)}."
            )

        x = self.relu(self.input_layer(x))
        x = self.block1(x)
        x = self.block2(x)
        x = self.block3(x)
        x = self.avgpool(x)                # (N, 64, 1, 1)
        x = self.flatten(x)                # (N, 64)
        logits = self.classifier(x)        # (N, n_classes)

        if return_logits:
            return logits
        return self.softmax(logits)


class ResNet20(CifarResNet):
    def __init__(self, n_classes=10, in_channels=3, shortcut="projection"):
        super(ResNet20, self).__init__(20, n_classes=n_classes, in_channels=in_channels, shortcut=shortcut)


class ResNet32(CifarResNet):
    def __init__(self, n_classes=10, in_channels=3, shortcut="projection"):
        super(ResNet32, self).__init__(32, n_classes=n_classes, in_channels=in_channels, shortcut=shortcut)


class ResNet44(CifarResNet):
    def __init__(self, n_classes=10, in_channels=3, shortcut="projection"):
        super(ResNet44, self).__init__(44, n_classes=n_classes, in_channels=in_channels, shortcut=shortcut)


class ResNet56(CifarResNet):
    def __init__(self, n_classes=10, in_channels=3, shortcut="projection"):
        super(ResNet56, self).__init__(56, n_classes=n_classes, in_channels=in_channels, shortcut=shortcut)


RESNETS = {
    20: ResNet20,
    32: ResNet32,
    44: ResNet44,
    56: ResNet56,
}


def resnet_for_depth(depth: int, **kwargs) -> CifarResNet:
    if depth not in RESNETS:
        raise ValueError(f"Unsupported ResNet depth {depth}. Available: {sorted(RESNETS)}")
    return RESNETS[depth](**kwargs)
