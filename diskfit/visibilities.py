"""
    Model visibilities from sky images: FFT of each channel, interpolation
    onto the data (u, v) points with the spheroidal gridding function, phase
    centre offsets, and the visibility log-likelihood.
"""
import numpy as np
from diskfit.const import arcsec
from diskfit.gridding import gcffun


class model_vis:
    """ Gridded model visibilities of one channel; VV is indexed [v, u]. """

    def __init__(self, lam, uu, vv, VV):
        self.lam = lam	# [microns]
        self.uu = uu	# [klambda]
        self.vv = vv	# [klambda]
        self.VV = VV	# [Jy]


def fftfreq(n, dl):
    """ Spatial frequencies [lambda] of an n-point FFT with spacing dl [rad]. """
    return np.fft.fftfreq(n, d=dl)


def transform(skim, index):
    """ FFT channel ``index`` of a (gridding-corrected) sky image. """
    ny, nx = skim.data.shape[:2]
    dl = np.abs(skim.ra[1] - skim.ra[0]) * arcsec
    dm = np.abs(skim.dec[1] - skim.dec[0]) * arcsec

    # the pixel at n/2 is the phase centre
    VV = np.fft.fftshift(np.fft.fft2(np.fft.ifftshift(skim.data[:, :, index])))
    VV *= dl * dm

    uu = np.fft.fftshift(fftfreq(nx, dl)) * 1e-3
    vv = np.fft.fftshift(fftfreq(ny, dm)) * 1e-3

    return model_vis(skim.lams[index], uu, vv, VV)


def _plan_axis(grid, pts):
    """ Indices and normalized weights of the 6 grid cells around each point. """
    du = grid[1] - grid[0]
    i0 = np.searchsorted(grid, pts, side='right') - 1
    if np.any(i0 - 2 < 0) or np.any(i0 + 3 > len(grid) - 1):
        bad = pts[(i0 - 2 < 0) | (i0 + 3 > len(grid) - 1)]
        raise ValueError('%d (u,v) points, e.g. %.3f klambda, fall outside '
                         'the usable model grid [%.3f, %.3f] klambda; '
                         'increase npix or decrease size_arcsec' %
                         (bad.size, bad[0], grid[2], grid[-4]))

    inds = i0[:, np.newaxis] + np.arange(-2, 4)[np.newaxis, :]
    wgts = gcffun((grid[inds] - pts[:, np.newaxis]) / (3. * du))
    wgts /= np.sum(wgts, axis=1)[:, np.newaxis]

    return inds, wgts


class interpolator:
    """
    Resample gridded model visibilities onto the (u, v) points of one data
    channel. The indices and weights are computed once, when the plan is
    made, and reused for every model.
    """

    def __init__(self, uu, vv, data_uu, data_vv):
        self.shape = (len(vv), len(uu))
        self.uinds, self.uwgts = _plan_axis(uu, np.asarray(data_uu))
        self.vinds, self.vwgts = _plan_axis(vv, np.asarray(data_vv))

    def __call__(self, mvis):
        if mvis.VV.shape != self.shape:
            raise ValueError('model grid %s does not match the plan %s'
                             % (mvis.VV.shape, self.shape))
        VV = mvis.VV[self.vinds[:, :, np.newaxis], self.uinds[:, np.newaxis, :]]
        return np.einsum('ij,ijk,ik->i', self.vwgts, VV, self.uwgts)


def plan_interpolate(dchan, uu, vv):
    """ Make the interpolation plan for a data channel on the (uu, vv) grid. """
    return interpolator(uu, vv, dchan.uu, dchan.vv)


def phase_shift(mvis, uu, vv, mu_RA, mu_DEC):
    """
    Shift the phase centre of visibilities mvis sampled at (uu, vv) [klambda]
    by (mu_RA, mu_DEC) [arcsec].
    """
    phase = 2 * np.pi * (uu * mu_RA + vv * mu_DEC) * arcsec * 1e3
    return mvis * np.exp(-1j * phase)


def lnprob(dchan, mvis):
    """ Gaussian log-likelihood of a data channel given model visibilities. """
    return -0.5 * np.sum(dchan.weight * np.abs(dchan.VV - mvis)**2)
