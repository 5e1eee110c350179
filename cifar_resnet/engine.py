import time
from dataclasses import dataclass
from typing import Optional

import torch
from torch.utils.data import DataLoader

from .config import DataConfig, ModelConfig, TrainConfig, DataMetadata
from .architectures.factory import build_model
from .utils.optimization import build_optimizer, build_scheduler, build_ema
from .trainer import train_epochs, test_model
from .utils.visualization import plot_training_curves


@dataclass
class TrainingSetup:
    model: torch.nn.Module
    criterion: torch.nn.Module
    optimizer: torch.optim.Optimizer
    scheduler: Optional[object]
    ema_model: Optional[torch.nn.Module]


def prepare_training(model_cfg: ModelConfig, train_cfg: TrainConfig, data_meta: DataMetadata, device: torch.device) -> TrainingSetup:
    model = build_model(model_cfg, data_meta).to(device)
    n_params = sum(p.numel() for p in model.parameters())
    print(f"ResNet-{model.depth} ({model.shortcut_kind} shortcut, {model.n_classes} classes): {n_params:,} parameters")

    optimizer = build_optimizer(model, train_cfg)
    return TrainingSetup(
        model=model,
        criterion=torch.nn.CrossEntropyLoss(label_smoothing=train_cfg.label_smoothing, reduction='none'),
        optimizer=optimizer,
        scheduler=build_scheduler(optimizer, train_cfg),
        ema_model=build_ema(model, train_cfg, device),
    )


def run_training(
    model_cfg: ModelConfig,
    train_cfg: TrainConfig,
    device: torch.device,
    train_loader: DataLoader,
    val_loader: DataLoader,
    test_loader: DataLoader,
    data_meta: DataMetadata
):
    """Train one model on ready-made loaders.

    Returns (history_df, model, ema_model); ema_model is None unless train_cfg.use_ema.
    """
    setup = prepare_training(model_cfg, train_cfg, data_meta, device)

    started = time.time()
    history_df = train_epochs(
        model=setup.model,
        train_loader=train_loader,
        val_loader=val_loader,
        criterion=setup.criterion,
        optimizer=setup.optimizer,
        scheduler=setup.scheduler,
        device=device,
        num_epochs=train_cfg.num_epochs,
        mixup_alpha=train_cfg.mixup_alpha,
        ema_model=setup.ema_model,
    )
    print(f"Training time per epoch: {(time.time() - started) / max(train_cfg.num_epochs, 1):.2f} seconds")

    if train_cfg.test_after_training:
        final_model = setup.ema_model if setup.ema_model is not None else setup.model
        test_model(final_model, test_loader, device)

    if train_cfg.plot_curves:
        plot_training_curves(history_df)

    return history_df, setup.model, setup.ema_model


def run_from_config(data_cfg: DataConfig, model_cfg: ModelConfig, train_cfg: TrainConfig, device: torch.device):
    """Build the dataloaders described by `data_cfg`, then train as in run_training."""
    # deferred: data_loading.loaders imports this package's config
    from data_loading.loaders import build_dataloaders

    train_loader, val_loader, test_loader, data_meta = build_dataloaders(data_cfg, device)
    return run_training(model_cfg, train_cfg, device, train_loader, val_loader, test_loader, data_meta)
