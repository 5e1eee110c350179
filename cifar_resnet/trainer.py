import time
from dataclasses import dataclass
from typing import Optional

import pandas as pd
import torch

from data_loading.augmentation import mixup_batch


@dataclass
class EpochStats:
    loss: float
    acc: float

    @property
    def err(self) -> float:
        return 1.0 - self.acc


def _summed_loss(loss: torch.Tensor, batch_size: int) -> torch.Tensor:
    # criterion may use reduction='none' (per-sample) or 'mean' (scalar)
    return loss.sum() if loss.dim() > 0 else loss * batch_size


def run_epoch(model, loader, criterion, device, optimizer=None, mixup_alpha: Optional[float] = None, ema_model=None) -> EpochStats:
    """One pass over `loader`; trains when an optimizer is given, otherwise evaluates.

    The model is always called for logits. Mixup is only applied while training.
    """
    training = optimizer is not None
    use_mixup = training and mixup_alpha is not None and mixup_alpha > 0.0
    model.train(training)

    total_loss, total_correct, seen = 0.0, 0.0, 0
    with torch.set_grad_enabled(training):
        for xb, yb in loader:
            xb, yb = xb.to(device), yb.to(device)
            bs = xb.size(0)

            if use_mixup:
                xb, ya, yb_mix, lam = mixup_batch(xb, yb, mixup_alpha)
                logits = model(xb, return_logits=True)
                loss = lam * _summed_loss(criterion(logits, ya), bs) + (1.0 - lam) * _summed_loss(criterion(logits, yb_mix), bs)
                preds = logits.argmax(1)
                correct = lam * (preds == ya).float().sum() + (1.0 - lam) * (preds == yb_mix).float().sum()
            else:
                logits = model(xb, return_logits=True)
                loss = _summed_loss(criterion(logits, yb), bs)
                correct = (logits.argmax(1) == yb).float().sum()

            if training:
                optimizer.zero_grad(set_to_none=True)
                (loss / bs).backward()
                optimizer.step()
                if ema_model is not None:
                    ema_model.update_parameters(model)

            total_loss += loss.item()
            total_correct += correct.item()
            seen += bs

    return EpochStats(loss=total_loss / seen, acc=total_correct / seen)


_HEADER = f"{'epoch':>5} {'train_loss':>10} {'train_err':>10} {'val_loss':>10} {'val_err':>10} {'lr':>10} {'time(s)':>8}"


def train_epochs(model, train_loader, val_loader, criterion, optimizer, scheduler, device, num_epochs: int = 5, mixup_alpha: Optional[float] = None, ema_model: Optional[torch.nn.Module] = None) -> pd.DataFrame:
    """Train for `num_epochs`, validating on the EMA model when one is given.

    Returns one history row per epoch (losses, accuracies, errors, learning rate, time).
    """
    eval_model = ema_model if ema_model is not None else model
    rows = []

    print(_HEADER)
    for epoch in range(1, num_epochs + 1):
        started = time.time()
        lr = optimizer.param_groups[0]['lr']

        train = run_epoch(model, train_loader, criterion, device, optimizer=optimizer, mixup_alpha=mixup_alpha, ema_model=ema_model)
        val = run_epoch(eval_model, val_loader, criterion, device)
        elapsed = time.time() - started

        print(f"{epoch:5d} {train.loss:10.4f} {train.err:10.4f} {val.loss:10.4f} {val.err:10.4f} {lr:10.6f} {elapsed:8.2f}")
        rows.append({
            'epoch': epoch,
            'train_loss': train.loss,
            'train_acc': train.acc,
            'val_loss': val.loss,
            'val_acc': val.acc,
            'train_err': train.err,
            'val_err': val.err,
            'learning_rate': lr,
            'time_elapsed': elapsed,
        })

        if scheduler is not None:
            scheduler.step()

    return pd.DataFrame(rows)


@torch.no_grad()
def test_model(model, test_loader, device) -> float:
    """Top-1 error of the model's probability output on `test_loader`."""
    model.eval()
    correct, seen = 0, 0
    for xb, yb in test_loader:
        probs = model(xb.to(device))
        correct += (probs.argmax(1) == yb.to(device)).sum().item()
        seen += xb.size(0)
    test_err = 1.0 - correct / seen
    print(f"Test error: {test_err:.4f}")
    return test_err
