from ..config import ModelConfig, DataMetadata
from . import resnet as rn


def build_model(model_cfg: ModelConfig, data_meta: DataMetadata):
    name = model_cfg.model_name.lower()

    if name == "resnet":
        depth = model_cfg.depth
    elif name.startswith("resnet") and name[len("resnet"):].isdigit():
        depth = int(name[len("resnet"):])
    else:
        raise ValueError(f"Unknown model_name '{model_cfg.model_name}'.")

    if depth not in rn.RESNETS:
        raise ValueError(f"Unsupported ResNet depth {depth}. Available: {sorted(rn.RESNETS)}")
    if data_meta.input_size != rn.IMAGE_SIZE:
        raise ValueError(
            f"CIFAR ResNets expect {rn.IMAGE_SIZE}x{rn.IMAGE_SIZE} inputs; "
            f"dataset '{data_meta.dataset_key}' has {data_meta.input_size}x{data_meta.input_size}."
        )

    return rn.resnet_for_depth(
        depth,
        n_classes=data_meta.num_classes,
        in_channels=data_meta.input_channels,
        shortcut=model_cfg.shortcut,
    )
