import pytest

from cifar_resnet.architectures.factory import build_model
from cifar_resnet.architectures.layers import ZeroPadShortcut
from cifar_resnet.architectures.resnet import ResNet20, ResNet32, ResNet56
from cifar_resnet.config import DataMetadata, ModelConfig


def test_build_by_depth(dummy_data_meta):
    model = build_model(ModelConfig(model_name="resnet", depth=32), dummy_data_meta)
    assert isinstance(model, ResNet32)
    assert model.n_classes == 10


def test_build_by_name_overrides_depth(dummy_data_meta):
    model = build_model(ModelConfig(model_name="ResNet56", depth=20), dummy_data_meta)
    assert isinstance(model, ResNet56)


def test_build_passes_shortcut_and_classes():
    meta = DataMetadata(dataset_key="cifar100", num_classes=100, input_channels=3, input_size=32)
    model = build_model(ModelConfig(shortcut="zero_pad"), meta)
    assert isinstance(model, ResNet20)
    assert model.classifier.out_features == 100
    assert isinstance(model.block2.shortcut, ZeroPadShortcut)


def test_build_rejects_unknown_model(dummy_data_meta):
    with pytest.raises(ValueError):
        build_model(ModelConfig(model_name="vgg"), dummy_data_meta)
    with pytest.raises(ValueError):
        build_model(ModelConfig(model_name="resnet18"), dummy_data_meta)
    with pytest.raises(ValueError):
        build_model(ModelConfig(depth=50), dummy_data_meta)


def test_build_rejects_wrong_image_size():
    meta = DataMetadata(dataset_key="tiny_imagenet", num_classes=200, input_channels=3, input_size=64)
    with pytest.raises(ValueError):
        build_model(ModelConfig(), meta)
