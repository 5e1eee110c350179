"""
Train a CIFAR ResNet (20/32/44/56).

Usage:
    python scripts/train_resnet.py --config configs/resnet20_cifar10.yaml
    python scripts/train_resnet.py --config configs/resnet56_cifar10.yaml --epochs 2
"""

import sys
from pathlib import Path
import argparse
import subprocess
import datetime
import torch

# Add project root to sys.path
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from cifar_resnet.config import DataConfig, ModelConfig, TrainConfig, load_run_config
from cifar_resnet.engine import run_from_config


def parse_args():
    parser = argparse.ArgumentParser(description="Train a CIFAR ResNet.")
    parser.add_argument("--config", type=str, default=None, help="YAML preset with data/model/train sections")
    parser.add_argument("--depth", type=int, default=None, choices=[20, 32, 44, 56], help="override model depth")
    parser.add_argument("--epochs", type=int, default=None, help="override number of epochs")
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--no-plot", action="store_true", help="skip the training-curve plot")
    return parser.parse_args()


#########################################################################################

if __name__ == "__main__":

    args = parse_args()

    # Git commit and timestamp info
    try:
        info = subprocess.check_output(["git", "show", "-s", "--format=%H%n%s"], text=True, stderr=subprocess.DEVNULL).strip().splitlines()
        if len(info) >= 2:
            print(f"Commit Message: {info[1]}")
    except (OSError, subprocess.CalledProcessError):
        print("Commit info unavailable.")

    now = datetime.datetime.now()
    print("Start time:", now.strftime("%Y-%m-%d %H:%M:%S"))

    # Reproducibility
    torch.manual_seed(args.seed)

    # Device selection
    device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
    print("Using device:", device)

    if args.config is not None:
        print(f"Loading preset {args.config}")
        data_cfg, model_cfg, train_cfg = load_run_config(args.config)
    else:
        data_cfg, model_cfg, train_cfg = DataConfig(), ModelConfig(), TrainConfig()

    if args.depth is not None:
        model_cfg.model_name = "resnet"
        model_cfg.depth = args.depth
    if args.epochs is not None:
        train_cfg.num_epochs = args.epochs
    if args.no_plot:
        train_cfg.plot_curves = False

    history_df, model, ema_model = run_from_config(data_cfg, model_cfg, train_cfg, device)
    print(history_df.tail())
