"""
    Conversions between channel wavelengths and Doppler velocities, and the
    channel mask built from excluded velocity ranges.
"""
import numpy as np
from diskfit.const import c_kms


def velocities(lam0, lams):
    """
    Non-relativistic velocities [km/s] of the channel wavelengths ``lams``
    relative to the rest wavelength ``lam0`` (same units).
    """
    lams = np.asarray(lams, dtype=float)
    return c_kms * (lams - lam0) / lam0


def doppler_shift(lams, vel):
    """
    Doppler shift wavelengths by the systemic velocity ``vel`` [km/s] using
    the relativistic formula.
    """
    beta = vel / c_kms
    return np.asarray(lams, dtype=float) * np.sqrt((1. - beta) / (1. + beta))


def doppler_velocity(lams, lams_shifted):
    """
    The velocity [km/s] for which doppler_shift(lams, vel) == lams_shifted.
    """
    r2 = (np.asarray(lams_shifted, dtype=float) / np.asarray(lams))**2
    return c_kms * (1. - r2) / (1. + r2)


def generate_vel_mask(exclude, vels):
    """
    Boolean mask over the channels, True for the channels to keep.

    exclude : None or a list of [v_lo, v_hi] velocity ranges [km/s]. Ranges
        are closed, so a channel sitting exactly on an endpoint is excluded.
    """
    vels = np.asarray(vels, dtype=float)
    mask = np.ones(vels.shape, dtype=bool)
    if not exclude:
        return mask

    for vrange in exclude:
        if len(vrange) != 2:
            raise ValueError('excluded ranges must be [v_lo, v_hi] pairs, '
                             'got %s' % (vrange,))
        vlo, vhi = min(vrange), max(vrange)
        mask &= ~((vels >= vlo) & (vels <= vhi))

    return mask
