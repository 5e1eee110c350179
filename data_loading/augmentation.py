from typing import Tuple

import numpy as np
import torch


def mixup_batch(inputs: torch.Tensor, targets: torch.Tensor, alpha: float) -> Tuple[torch.Tensor, torch.Tensor, torch.Tensor, float]:
    """Blend each sample with a random partner from the same batch.

    Returns the mixed inputs, both target sets and the mixing weight `lam`
    applied to the first set. `alpha <= 0` leaves the batch untouched.
    """
    if alpha <= 0.0:
        return inputs, targets, targets, 1.0
    lam = float(np.random.beta(alpha, alpha))
    index = torch.randperm(inputs.size(0), device=inputs.device)
    mixed_inputs = lam * inputs + (1.0 - lam) * inputs[index]
    return mixed_inputs, targets, targets[index], lam
