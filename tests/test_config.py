from pathlib import Path

import pytest

from cifar_resnet.config import DataConfig, ModelConfig, TrainConfig, load_run_config, save_run_config

_CONFIGS = Path(__file__).resolve().parent.parent / "configs"


@pytest.mark.parametrize("depth", [20, 32, 44, 56])
def test_shipped_presets_load(depth):
    data_cfg, model_cfg, train_cfg = load_run_config(_CONFIGS / f"resnet{depth}_cifar10.yaml")
    assert data_cfg.dataset_key == "cifar10"
    assert model_cfg.depth == depth
    assert train_cfg.scheduler == "multistep"
    assert train_cfg.milestones == [100, 150]


def test_save_then_load(tmp_path):
    path = tmp_path / "run.yaml"
    data_cfg = DataConfig(dataset_key="cifar100", batch_size=64)
    model_cfg = ModelConfig(depth=44, shortcut="zero_pad")
    train_cfg = TrainConfig(num_epochs=3, scheduler="warmup_cosine", warmup_epochs=1)
    save_run_config(path, data_cfg, model_cfg, train_cfg)

    loaded = load_run_config(path)
    assert loaded == (data_cfg, model_cfg, train_cfg)


def test_missing_sections_use_defaults(tmp_path):
    path = tmp_path / "partial.yaml"
    path.write_text("model:\n  depth: 56\n")
    data_cfg, model_cfg, train_cfg = load_run_config(path)
    assert data_cfg == DataConfig()
    assert model_cfg.depth == 56
    assert train_cfg == TrainConfig()


def test_unknown_keys_rejected(tmp_path):
    bad_key = tmp_path / "bad_key.yaml"
    bad_key.write_text("model:\n  layers: 3\n")
    with pytest.raises(ValueError):
        load_run_config(bad_key)

    bad_section = tmp_path / "bad_section.yaml"
    bad_section.write_text("optim:\n  lr: 0.1\n")
    with pytest.raises(ValueError):
        load_run_config(bad_section)
