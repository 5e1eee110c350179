import sys
from pathlib import Path

import matplotlib
matplotlib.use("Agg")

import pytest
import torch
from torch.utils.data import DataLoader, TensorDataset

# Add project root to sys.path so tests can import 'cifar_resnet' and 'data_loading'
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from cifar_resnet.config import DataMetadata


@pytest.fixture
def dummy_data_meta():
    """Returns metadata for a dummy 10-class dataset with 3x32x32 images."""
    return DataMetadata(
        dataset_key="dummy",
        num_classes=10,
        input_channels=3,
        input_size=32
    )

@pytest.fixture
def dummy_dataloader():
    """Returns a DataLoader with 8 random samples (batch_size=4)."""
    torch.manual_seed(0)
    X = torch.randn(8, 3, 32, 32)
    y = torch.randint(0, 10, (8,))
    dataset = TensorDataset(X, y)
    return DataLoader(dataset, batch_size=4)
