"""
    Read RADMC-3D images and convert them to sky coordinates.
"""
import os
import numpy as np
from astropy.io import ascii
from diskfit.const import AU, fftspace


class raw_image:
    """ An image as written by RADMC-3D: data[ny, nx, nlam], cgs units. """

    def __init__(self, data, pixsize_x, pixsize_y, lams):
        self.data = data
        self.pixsize_x = pixsize_x	# [cm]
        self.pixsize_y = pixsize_y	# [cm]
        self.lams = lams		# [microns]


class sky_image:
    """ An image on the sky: data[ny, nx, nlam] in Jy/sr, ra/dec in arcsec. """

    def __init__(self, data, ra, dec, lams):
        self.data = data
        self.ra = ra
        self.dec = dec
        self.lams = lams


def imread(fname='image.out'):
    """ Load a RADMC-3D (iformat 1) image file. """
    if not os.path.exists(fname):
        raise OSError('no image file %s' % fname)

    with open(fname) as imagefile:
        header = [imagefile.readline() for i in range(4)]
    try:
        im_nx, im_ny = [int(s) for s in header[1].split()]
        nlam = int(header[2])
        pixsize_x, pixsize_y = [float(s) for s in header[3].split()]
    except (IndexError, ValueError):
        raise ValueError('%s has a malformed header' % fname)

    imvals = ascii.read(fname, format='fast_csv', guess=False, data_start=4,
                        fast_reader={'use_fast_converter': True})['1']
    imvals = np.asarray(imvals, dtype=float)
    if imvals.size != nlam * (1 + im_nx * im_ny):
        raise ValueError('%s holds %d values, expected %d' %
                         (fname, imvals.size, nlam * (1 + im_nx * im_ny)))
    lams = imvals[:nlam]

    # RADMC-3D writes x fastest, one frame per wavelength
    data = np.reshape(imvals[nlam:], [nlam, im_ny, im_nx])
    data = np.moveaxis(data, 0, -1)

    return raw_image(data, pixsize_x, pixsize_y, lams)


def im_to_sky(img, dpc):
    """
    Convert a raw image to Jy/sr on sky coordinates at distance dpc [pc]. The
    x axis is flipped so RA increases with column index; the pixel at index
    n/2 of each axis carries the coordinate 0.
    """
    # erg cm^-2 s^-1 Hz^-1 sr^-1 --> Jy / sr
    data = 1e23 * img.data[:, ::-1, :]

    ny, nx = data.shape[:2]

    # pixel sizes [arcsec]
    dx = img.pixsize_x / AU / dpc
    dy = img.pixsize_y / AU / dpc
    ra = fftspace(0.5 * nx * dx, nx)
    dec = fftspace(0.5 * ny * dy, ny)

    return sky_image(data, ra, dec, img.lams)
