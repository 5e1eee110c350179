import numpy as np
import matplotlib.pyplot as plt


def plot_training_curves(history_df, save_path=None):
    """Loss (left) and top-1 error (right) per epoch, learning rate dashed on the loss panel.

    Saves to `save_path` and closes the figure when given, otherwise shows it.
    """
    epochs = np.arange(1, len(history_df) + 1)
    fig, (loss_ax, err_ax) = plt.subplots(1, 2, figsize=(12, 5))

    loss_ax.plot(epochs, history_df['train_loss'], label='Train Loss')
    loss_ax.plot(epochs, history_df['val_loss'], label='Val Loss')
    if 'learning_rate' in history_df:
        loss_ax.plot(epochs, history_df['learning_rate'], label='Learning Rate', linestyle='--')
    loss_ax.set(xlabel='Epoch', ylabel='Loss', title='Training and Validation Loss')
    loss_ax.legend()

    for split in ('train', 'val'):
        err = history_df[f'{split}_err'] if f'{split}_err' in history_df else 1.0 - history_df[f'{split}_acc']
        err_ax.plot(epochs, err, label=f'{split.capitalize()} Error')
    err_ax.set(xlabel='Epoch', ylabel='Error', title='Training and Validation Error')
    err_ax.legend()

    fig.tight_layout()
    if save_path is not None:
        fig.savefig(save_path)
        plt.close(fig)
    else:
        plt.show()
    return fig
