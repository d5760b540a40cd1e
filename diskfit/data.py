import os
import numpy as np
import h5py


"""
    A single spectral channel of visibility data.
"""
class channel:

    def __init__(self, lam, uu, vv, VV, weight):

        # wavelength of the channel [microns]
        self.lam = float(lam)

        # spatial frequencies [klambda]
        self.uu = _frozen(uu, float)
        self.vv = _frozen(vv, float)

        # complex visibilities [Jy] and weights [1/Jy^2]
        self.VV = _frozen(VV, complex)
        self.weight = _frozen(weight, float)

        if not (self.uu.shape == self.vv.shape == self.VV.shape ==
                self.weight.shape):
            raise ValueError('u, v, visibilities and weights must have '
                             'the same shape')
        self.nvis = self.VV.size


"""
    The visibility dataset: an ordered, read-only sequence of channels.
"""
class dataset:

    def __init__(self, channels):
        self.channels = tuple(channels)
        self.nchan = len(self.channels)
        self.lams = np.array([dchan.lam for dchan in self.channels])

    def __len__(self):
        return self.nchan

    def __iter__(self):
        return iter(self.channels)

    def __getitem__(self, i):
        return self.channels[i]

    def select(self, mask):
        """ Keep only the channels where mask is True. """
        mask = np.asarray(mask, dtype=bool)
        if mask.shape != (self.nchan,):
            raise ValueError('mask has %d entries for %d channels'
                             % (mask.size, self.nchan))
        return dataset([dchan for dchan, keep in zip(self.channels, mask)
                        if keep])


def _frozen(arr, dtype):
    arr = np.array(arr, dtype=dtype)
    arr.setflags(write=False)
    return arr


def read_data(datafile, mask=None):
    """
    Load a visibility dataset from an HDF5 file with datasets lams (nchan)
    and uu, vv, real, imag, weight (nchan, nvis). If a boolean mask is given,
    only the channels where it is True are returned.
    """
    with h5py.File(datafile, 'r') as f:
        for key in ['lams', 'uu', 'vv', 'real', 'imag', 'weight']:
            if key not in f:
                raise ValueError('%s is missing the "%s" dataset'
                                 % (datafile, key))
        lams = np.asarray(f['lams'])
        uu, vv = np.asarray(f['uu']), np.asarray(f['vv'])
        VV = np.asarray(f['real']) + 1j * np.asarray(f['imag'])
        wgt = np.asarray(f['weight'])

    dset = dataset([channel(lams[i], uu[i], vv[i], VV[i], wgt[i])
                    for i in range(len(lams))])
    if mask is not None:
        dset = dset.select(mask)

    return dset


def write_data(dset, datafile):
    """
    Store a dataset in the HDF5 layout read by read_data. All channels must
    carry the same number of visibilities.
    """
    if len({dchan.nvis for dchan in dset}) > 1:
        raise ValueError('channels with different numbers of visibilities '
                         'cannot be stored together')

    if os.path.exists(datafile):
        os.remove(datafile)
    with h5py.File(datafile, 'w') as f:
        f.create_dataset('lams', data=dset.lams)
        f.create_dataset('uu', data=np.array([d.uu for d in dset]))
        f.create_dataset('vv', data=np.array([d.vv for d in dset]))
        f.create_dataset('real', data=np.array([d.VV.real for d in dset]))
        f.create_dataset('imag', data=np.array([d.VV.imag for d in dset]))
        f.create_dataset('weight', data=np.array([d.weight for d in dset]))

    return


def conjugate(dset):
    """
    Complex-conjugate every visibility. The data files use the opposite sign
    convention from the model transforms.
    """
    return dataset([channel(d.lam, d.uu, d.vv, np.conj(d.VV), d.weight)
                    for d in dset])
