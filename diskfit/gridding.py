"""
    Prolate spheroidal gridding functions (Schwab 1984; m = 6, alpha = 1),
    used to correct the model image before the FFT and to interpolate the
    gridded visibilities onto the data (u, v) points.
"""
import numpy as np


# rational approximation coefficients, for |eta| <= 0.75 and 0.75 < |eta| <= 1
P0 = np.array([8.203343e-2, -3.644705e-1, 6.278660e-1, -5.335581e-1,
               2.312756e-1])
Q0 = np.array([1., 8.212018e-1, 2.078043e-1])
P1 = np.array([4.028559e-3, -3.697768e-2, 1.021332e-1, -1.201436e-1,
               6.412774e-2])
Q1 = np.array([1., 9.599102e-1, 2.918724e-1])


def spheroid(eta):
    """ The spheroidal function; zero for |eta| > 1. """
    eta = np.atleast_1d(np.abs(np.asarray(eta, dtype=float)))
    out = np.zeros_like(eta)

    inner = eta <= 0.75
    outer = (eta > 0.75) & (eta <= 1.0)

    for sel, P, Q, eta0 in [(inner, P0, Q0, 0.75), (outer, P1, Q1, 1.0)]:
        nn = eta[sel]**2 - eta0**2
        num = sum(P[k] * nn**k for k in range(len(P)))
        den = sum(Q[k] * nn**k for k in range(len(Q)))
        out[sel] = num / den

    return out


def corrfun(eta):
    """ Image-plane correction function. """
    return spheroid(eta)


def gcffun(eta):
    """ Gridding convolution function. """
    eta = np.asarray(eta, dtype=float)
    return np.abs(1. - eta**2) * spheroid(eta)


def correct_image(skim):
    """
    Divide a sky image by the gridding correction function, in place. Must be
    applied exactly once, before the image is transformed.
    """
    ny, nx = skim.data.shape[:2]

    # from pixel indices, so the first pixel sits at exactly eta = -1
    eta_ra = (np.arange(nx) - nx // 2) / (nx / 2)
    eta_dec = (np.arange(ny) - ny // 2) / (ny / 2)

    corr = np.outer(corrfun(eta_dec), corrfun(eta_ra))
    skim.data /= corr[:, :, np.newaxis]

    return skim
