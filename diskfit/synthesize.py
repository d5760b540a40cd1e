"""
    Synthetic visibility data from the forward model.
"""
import numpy as np
from diskfit.data import channel, dataset


def synthesize(post, p, noise=None, seed=None):
    """
    Model visibilities of the free parameter vector p at the (u, v) points of
    the posterior's dataset, in the sign convention of the data files. With
    noise [Jy], Gaussian noise of that standard deviation is added to the
    real and imaginary parts and the weights are set to 1 / noise^2.
    """
    rng = np.random.default_rng(seed)

    channels = []
    for dchan, mvis in zip(post.context.dataset,
                           post.model_visibilities(p)):
        weight = dchan.weight
        if noise is not None:
            mvis = mvis + noise * (rng.standard_normal(mvis.shape) +
                                   1j * rng.standard_normal(mvis.shape))
            weight = np.full(mvis.shape, 1. / noise**2)

        # back to the data file convention
        channels.append(channel(dchan.lam, dchan.uu, dchan.vv,
                                np.conj(mvis), weight))

    return dataset(channels)
