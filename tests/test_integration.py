import pandas as pd
import pytest
import torch
import torch.nn as nn

from cifar_resnet import trainer
from cifar_resnet.architectures.resnet import ResNet20
from cifar_resnet.config import ModelConfig, TrainConfig
from cifar_resnet.engine import run_training
from cifar_resnet.utils.visualization import plot_training_curves


def test_train_loop_one_epoch(dummy_dataloader):
    """
    Integration test: Runs the training loop for 1 epoch on dummy data.
    Verifies that it completes without error and returns a history DataFrame.
    """
    device = torch.device("cpu")
    model = ResNet20(n_classes=10).to(device)
    optimizer = torch.optim.SGD(model.parameters(), lr=0.01)
    criterion = nn.CrossEntropyLoss(reduction='none')

    history = trainer.train_epochs(
        model=model,
        train_loader=dummy_dataloader,
        val_loader=dummy_dataloader, # reuse for speed
        criterion=criterion,
        optimizer=optimizer,
        scheduler=None,
        device=device,
        num_epochs=1,
        mixup_alpha=None,
        ema_model=None
    )

    assert len(history) == 1
    assert "train_loss" in history.columns
    assert "val_loss" in history.columns
    assert not history["train_loss"].isna().any()
    assert 0.0 <= history["val_err"].iloc[0] <= 1.0


def test_train_loop_with_mixup_and_mean_reduction(dummy_dataloader):
    model = ResNet20()
    optimizer = torch.optim.SGD(model.parameters(), lr=0.01)
    scheduler = torch.optim.lr_scheduler.StepLR(optimizer, step_size=1, gamma=0.5)

    history = trainer.train_epochs(
        model, dummy_dataloader, dummy_dataloader, nn.CrossEntropyLoss(), optimizer, scheduler,
        torch.device("cpu"), num_epochs=2, mixup_alpha=0.2,
    )

    assert list(history["epoch"]) == [1, 2]
    assert history["learning_rate"].tolist() == pytest.approx([0.01, 0.005])
    assert not history["val_loss"].isna().any()


def test_evaluate_returns_error(dummy_dataloader):
    err = trainer.test_model(ResNet20(), dummy_dataloader, torch.device("cpu"))
    assert 0.0 <= err <= 1.0


def test_run_training_end_to_end(dummy_dataloader, dummy_data_meta):
    model_cfg = ModelConfig(model_name="resnet", depth=20, shortcut="zero_pad")
    train_cfg = TrainConfig(
        num_epochs=1,
        scheduler="multistep",
        milestones=[1],
        use_ema=True,
        plot_curves=False,
        test_after_training=True,
    )

    history_df, model, ema_model = run_training(
        model_cfg,
        train_cfg,
        torch.device("cpu"),
        dummy_dataloader,
        dummy_dataloader,
        dummy_dataloader,
        dummy_data_meta,
    )

    assert isinstance(history_df, pd.DataFrame)
    assert len(history_df) == 1
    assert model.depth == 20
    assert ema_model is not None


def test_plot_training_curves_saves(tmp_path):
    history = pd.DataFrame({
        'train_loss': [2.0, 1.5],
        'val_loss': [2.1, 1.7],
        'train_acc': [0.2, 0.4],
        'val_acc': [0.15, 0.35],
        'train_err': [0.8, 0.6],
        'val_err': [0.85, 0.65],
        'learning_rate': [0.1, 0.1],
    })
    out = tmp_path / "curves.png"
    plot_training_curves(history, save_path=out)
    assert out.exists()


def test_run_epoch_eval_matches_for_both_reductions(dummy_dataloader):
    """Evaluation leaves weights untouched and averages per sample whatever the reduction."""
    model = ResNet20().eval()
    before = [p.detach().clone() for p in model.parameters()]
    device = torch.device("cpu")

    per_sample = trainer.run_epoch(model, dummy_dataloader, nn.CrossEntropyLoss(reduction='none'), device)
    batch_mean = trainer.run_epoch(model, dummy_dataloader, nn.CrossEntropyLoss(), device)

    assert per_sample.loss == pytest.approx(batch_mean.loss, rel=1e-5)
    assert per_sample.err == pytest.approx(1.0 - per_sample.acc)
    assert all(torch.equal(a, b) for a, b in zip(before, model.parameters()))
    assert not model.training


def test_run_epoch_training_updates_weights(dummy_dataloader):
    model = ResNet20()
    optimizer = torch.optim.SGD(model.parameters(), lr=0.1)
    before = model.classifier.weight.detach().clone()

    stats = trainer.run_epoch(model, dummy_dataloader, nn.CrossEntropyLoss(reduction='none'), torch.device("cpu"), optimizer=optimizer)

    assert model.training
    assert not torch.equal(before, model.classifier.weight)
    assert stats.loss > 0.0


def test_run_from_config_builds_loaders(monkeypatch, dummy_dataloader, dummy_data_meta):
    import data_loading.loaders
    from cifar_resnet.config import DataConfig
    from cifar_resnet.engine import run_from_config

    requested = []

    def _fake_build_dataloaders(data_cfg, device):
        requested.append(data_cfg.dataset_key)
        return dummy_dataloader, dummy_dataloader, dummy_dataloader, dummy_data_meta

    monkeypatch.setattr(data_loading.loaders, "build_dataloaders", _fake_build_dataloaders)

    history_df, model, ema_model = run_from_config(
        DataConfig(dataset_key="cifar10"),
        ModelConfig(depth=32),
        TrainConfig(num_epochs=1, scheduler=None, plot_curves=False, test_after_training=False),
        torch.device("cpu"),
    )

    assert requested == ["cifar10"]
    assert model.depth == 32
    assert ema_model is None
    assert len(history_df) == 1
