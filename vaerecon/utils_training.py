"""
Training utilities for reconstruction heads.

Includes:
- `train_reconstruction_head` to fit a decoder head by maximum likelihood.
- `evaluate_log_probability` for the average per-example log-likelihood.
"""

from __future__ import annotations
from typing import Dict, Union

import logging

import numpy as np
import torch
from torch.utils.data import DataLoader
from tqdm import tqdm

from .heads import ReconstructionHead

logger = logging.getLogger(__name__)


# ====================================================================== #
#                           Head Training                                #
# ====================================================================== #
def train_reconstruction_head(
    head: ReconstructionHead,
    dataloader: DataLoader,
    *,
    epochs: int = 1_000,
    optimizer: torch.optim.Optimizer | None = None,
    show_progress: bool = False,
    device: str = "cpu",
) -> Dict[str, Union[float, np.ndarray]]:
    """
    Train a head p(X|Z) to minimise the negative log-likelihood.

    The dataloader yields `(z, x)` pairs. Gradients reach the network through
    the distribution's closed-form gradient.

    Returns
    -------
    Dict with:
        - "loss_history" : array (epochs,)
        - "loss"         : final epoch negative log-likelihood per example
    """
    optimizer = optimizer or torch.optim.Adam(head.parameters(), lr=3e-4)
    head.to(device)

    loss_hist: list[float] = []
    epoch_loss = float("nan")
    loop = tqdm(range(epochs), disable=not show_progress)

    for epoch in loop:
        epoch_loss = 0.0

        for z_batch, x_batch in dataloader:
            z_batch, x_batch = z_batch.to(device), x_batch.to(device)

            optimizer.zero_grad()
            params = head(z_batch)
            loss = -head.log_prob(params, x_batch, average=True)
            loss.backward()
            optimizer.step()

            epoch_loss += loss.item()

        epoch_loss /= len(dataloader)
        loss_hist.append(epoch_loss)

        if not np.isfinite(epoch_loss):
            logger.warning("Non-finite loss %s at epoch %d (%r)", epoch_loss, epoch, head.distribution)

        if show_progress:
            loop.set_postfix({"nll": epoch_loss})

    logger.info("Trained %r for %d epochs, final nll %.4f", head.distribution, epochs, epoch_loss)

    return {
        "loss_history": np.array(loss_hist, dtype=np.float32),
        "loss": epoch_loss,
    }


# ====================================================================== #
#                          Evaluation Function                           #
# ====================================================================== #
@torch.no_grad()
def evaluate_log_probability(
    head: ReconstructionHead,
    dataloader: DataLoader,
    device: str = "cpu",
) -> float:
    """
    Average log-likelihood per example over a dataset.

    Returns
    -------
    log_prob : float
        Mean log p(X | Z) in nats.
    """
    total = 0.0
    numel = 0

    for z, x in dataloader:
        z = z.to(device)
        x = x.to(device)
        params = head(z)
        total += head.distribution.log_probability(x, params, average=False)
        numel += x.shape[0]

    return total / numel
