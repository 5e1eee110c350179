from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import List, Optional, Tuple, Union

import yaml


@dataclass
class DataConfig:
    dataset_key: str = "cifar10"
    use_augment: Optional[bool] = None
    root: Optional[str] = None
    val_split: Optional[int] = None
    batch_size: Optional[int] = None
    val_batch_size: Optional[int] = None
    test_batch_size: Optional[int] = None
    num_workers: Optional[int] = None
    pin_memory: Optional[bool] = None
    persistent_workers: bool = True
    prefetch_factor: Optional[int] = 4

@dataclass
class ModelConfig:
    model_name: str = "resnet"
    depth: int = 20
    shortcut: str = "projection"

@dataclass
class TrainConfig:
    num_epochs: int = 200
    mixup_alpha: Optional[float] = None
    label_smoothing: float = 0.0
    optimizer: str = "sgd"
    learning_rate: float = 0.1
    momentum: float = 0.9
    weight_decay: float = 1e-4
    nesterov: bool = False
    scheduler: Optional[str] = "multistep"
    warmup_epochs: int = 0
    min_lr: float = 1e-3
    milestones: List[int] = field(default_factory=lambda: [100, 150])
    gamma: float = 0.1
    use_ema: bool = False
    ema_decay: float = 0.99
    plot_curves: bool = True
    test_after_training: bool = True

@dataclass
class DataMetadata:
    dataset_key: str
    num_classes: int
    input_channels: int
    input_size: int


_SECTIONS = {
    "data": DataConfig,
    "model": ModelConfig,
    "train": TrainConfig,
}


def _build_section(name: str, cls, values: Optional[dict]):
    values = values or {}
    if not isinstance(values, dict):
        raise ValueError(f"Section '{name}' must be a mapping, got {type(values).__name__}.")
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(f"Unknown keys in section '{name}': {unknown}. Available: {sorted(known)}")
    return cls(**values)


def load_run_config(path: Union[str, Path]) -> Tuple[DataConfig, ModelConfig, TrainConfig]:
    """Read a YAML preset with optional `data`, `model` and `train` sections.

    Missing sections and keys fall back to the dataclass defaults.
    """
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Preset '{path}' must contain a mapping at the top level.")
    unknown = sorted(set(raw) - set(_SECTIONS))
    if unknown:
        raise ValueError(f"Unknown sections in preset '{path}': {unknown}. Available: {sorted(_SECTIONS)}")

    data_cfg = _build_section("data", DataConfig, raw.get("data"))
    model_cfg = _build_section("model", ModelConfig, raw.get("model"))
    train_cfg = _build_section("train", TrainConfig, raw.get("train"))
    return data_cfg, model_cfg, train_cfg


def save_run_config(path: Union[str, Path], data_cfg: DataConfig, model_cfg: ModelConfig, train_cfg: TrainConfig) -> None:
    payload = {
        "data": asdict(data_cfg),
        "model": asdict(model_cfg),
        "train": asdict(train_cfg),
    }
    with open(path, "w") as f:
        yaml.safe_dump(payload, f, sort_keys=False)
