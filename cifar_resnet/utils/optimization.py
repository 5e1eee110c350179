import math

import torch
from torch.nn.modules.batchnorm import _BatchNorm
from torch.optim.swa_utils import AveragedModel
from ..config import TrainConfig


def make_param_groups(model, verbose: bool = True):
    """Split trainable parameters into (decay, no_decay); BatchNorm params and biases skip weight decay."""
    bn_param_ids = {
        id(p)
        for module in model.modules() if isinstance(module, _BatchNorm)
        for p in module.parameters()
    }

    decay_params, no_decay_params = [], []
    for name, p in model.named_parameters():
        if not p.requires_grad:
            continue
        skip_decay = id(p) in bn_param_ids or name.endswith('.bias')
        (no_decay_params if skip_decay else decay_params).append(p)

    if verbose:
        print(f"Optimizer params: decay={len(decay_params)} no_decay={len(no_decay_params)} (bn_params={len(bn_param_ids)})")
    return decay_params, no_decay_params, bn_param_ids


def build_optimizer(model, train_cfg: TrainConfig, verbose: bool = True):
    if train_cfg.optimizer.lower() != "sgd":
        raise ValueError(f"Unsupported optimizer '{train_cfg.optimizer}'. Available: ['sgd']")

    decay_params, no_decay_params, _ = make_param_groups(model, verbose=verbose)
    return torch.optim.SGD(
        [
            {'params': decay_params, 'weight_decay': train_cfg.weight_decay},
            {'params': no_decay_params, 'weight_decay': 0.0},
        ],
        lr=train_cfg.learning_rate,
        momentum=train_cfg.momentum,
        nesterov=train_cfg.nesterov,
    )


def warmup_cosine_factor(epoch_idx: int, train_cfg: TrainConfig) -> float:
    """LR multiplier: linear warmup, then cosine decay floored at min_lr / learning_rate."""
    warmup = train_cfg.warmup_epochs
    floor = train_cfg.min_lr / train_cfg.learning_rate
    if epoch_idx < warmup:
        return (epoch_idx + 1) / warmup
    decay_epochs = max(train_cfg.num_epochs, 1) - warmup
    if decay_epochs <= 0:
        return floor
    progress = min(max((epoch_idx - warmup) / decay_epochs, 0.0), 1.0)
    return max(0.5 * (1.0 + math.cos(math.pi * progress)), floor)


def _warmup_cosine(optimizer, train_cfg: TrainConfig):
    return torch.optim.lr_scheduler.LambdaLR(optimizer, lr_lambda=lambda epoch: warmup_cosine_factor(epoch, train_cfg))


def _multistep(optimizer, train_cfg: TrainConfig):
    # lr * gamma at each milestone epoch, as in the CIFAR experiments of the ResNet paper
    milestones = sorted(int(m) for m in train_cfg.milestones)
    return torch.optim.lr_scheduler.MultiStepLR(optimizer, milestones=milestones, gamma=train_cfg.gamma)


SCHEDULERS = {
    "warmup_cosine": _warmup_cosine,
    "multistep": _multistep,
}


def build_scheduler(optimizer, train_cfg: TrainConfig):
    name = (train_cfg.scheduler or "none").lower()
    if name in {"none", ""}:
        return None
    if name not in SCHEDULERS:
        raise ValueError(f"Unknown scheduler '{train_cfg.scheduler}'. Available: {sorted(SCHEDULERS)}")
    return SCHEDULERS[name](optimizer, train_cfg)


def build_ema(model, train_cfg: TrainConfig, device: torch.device):
    """Exponential moving average of weights and BatchNorm buffers, or None when disabled."""
    if not train_cfg.use_ema:
        return None
    decay = train_cfg.ema_decay

    def _ema(averaged, current, num_averaged):
        return decay * averaged + (1.0 - decay) * current

    # use_buffers keeps the BatchNorm running stats in step with the weights
    ema_model = AveragedModel(model, avg_fn=_ema, use_buffers=True).to(device)
    ema_model.eval()
    ema_model.requires_grad_(False)
    return ema_model
