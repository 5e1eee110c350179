import torch
import torch.nn as nn


PADDING_MODES = ("same", "valid")


def _resolve_padding(kernel_size: int, padding: str) -> int:
    if not isinstance(padding, str):
        raise ValueError(f"Padding must be one of {list(PADDING_MODES)}, got {padding!r}.")
    mode = padding.lower()
    if mode == "valid":
        return 0
    if mode == "same":
        if kernel_size % 2 == 0:
            raise ValueError(f"'same' padding needs an odd kernel size, got {kernel_size}.")
        return kernel_size // 2
    raise ValueError(f"Unknown padding '{padding}'. Available: {list(PADDING_MODES)}")


class Conv2DBatchNorm(nn.Module):
    """
    Conv2DBatchNorm(in_channels, out_channels, kernel_size=3, stride=1, padding="same")
    A square convolution followed by BatchNorm2d, with no activation.
    Args:
        in_channels (int): Number of channels in the input tensor.
        out_channels (int): Number of filters (and BatchNorm features).
        kernel_size (int, optional): Side of the square kernel. Defaults to 3.
        stride (int, optional): Spatial stride of the convolution. Defaults to 1.
        padding (str, optional): "same" keeps H_out = ceil(H / stride); "valid" adds
            no padding. Defaults to "same".
    Notes:
        - The convolution uses bias=False; the BatchNorm shift plays that role.
        - "same" padding is symmetric, so only odd kernel sizes are accepted. Output sizes
          match TensorFlow's "same", but with stride 2 TensorFlow pads 0 before and 1 after,
          so the sampled window positions (and thus the outputs) are shifted by one pixel.
    """

    def __init__(self, in_channels, out_channels, kernel_size=3, stride=1, padding="same"):

        super(Conv2DBatchNorm, self).__init__()

        self.conv = nn.Conv2d(
            in_channels,
            out_channels,
            kernel_size=kernel_size,
            stride=stride,
            padding=_resolve_padding(kernel_size, padding),
            bias=False,
        )
        self.norm = nn.BatchNorm2d(out_channels)

    def forward(self, x):
        return self.norm(self.conv(x))


class ZeroPadShortcut(nn.Module):
    """Option A shortcut from the CIFAR ResNet paper.

    Subsamples spatially by slicing with the stride and appends zero channels.
    No learnable parameters. With stride 1 and equal channels it is the identity,
    which is what the first stage gets; every block carries a shortcut module so
    the projection and zero-pad variants share one block layout.
    """
    def __init__(self, in_channels, out_channels, stride=1):
        super(ZeroPadShortcut, self).__init__()
        if out_channels < in_channels:
            raise ValueError(
                f"Zero-pad shortcut cannot reduce channels ({in_channels} -> {out_channels})."
            )
        self.in_channels = in_channels
        self.out_channels = out_channels
        self.stride = stride

    def forward(self, x):
        if self.stride > 1:
            x = x[:, :, :: self.stride, :: self.stride]

        if self.out_channels > self.in_channels:
            pad_ch = self.out_channels - self.in_channels
            pad_shape = (x.size(0), pad_ch, x.size(2), x.size(3))
            pad = torch.zeros(pad_shape, dtype=x.dtype, device=x.device)
            x = torch.cat([x, pad], dim=1)

        return x


def projection_shortcut(in_channels, out_channels, stride=1):
    # Option B: 1x1 conv + BN, applied even when the shapes already match
    return Conv2DBatchNorm(in_channels, out_channels, kernel_size=1, stride=stride, padding="same")


SHORTCUTS = {
    "projection": projection_shortcut,
    "zero_pad": ZeroPadShortcut,
}


def build_shortcut(kind: str, in_channels: int, out_channels: int, stride: int = 1) -> nn.Module:
    key = kind.lower() if isinstance(kind, str) else None
    if key not in SHORTCUTS:
        raise ValueError(f"Unknown shortcut '{kind}'. Available: {sorted(SHORTCUTS)}")
    return SHORTCUTS[key](in_channels, out_channels, stride=stride)
