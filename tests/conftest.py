import os
import sys
import numpy as np
import pytest
from diskfit.const import lam0s, c_kms
from diskfit.data import channel, dataset, write_data


FAKE_RADMC3D = os.path.join(os.path.dirname(__file__), 'fake_radmc3d.py')

standard_values = {'M_star': 1.0, 'r_c': 30., 'T_10': 100., 'q': 0.5,
                   'gamma': 1.0, 'logM_gas': -3., 'ksi': 0.2, 'dpc': 100.,
                   'incl': 40., 'PA': 70., 'vel': 0., 'mu_RA': 0.,
                   'mu_DEC': 0.}

grid_args = {'nr': 16, 'ntheta': 8, 'r_in': 0.5, 'r_out': 300.}


def simulator(*flags):
    return (sys.executable, FAKE_RADMC3D) + flags


def make_dataset(vels, nvis=20, seed=0):
    rng = np.random.default_rng(seed)
    lam0 = lam0s['12CO2-1']
    channels = []
    for vel in vels:
        uu = rng.uniform(-60., 60., nvis)
        vv = rng.uniform(-60., 60., nvis)
        VV = rng.normal(size=nvis) + 1j * rng.normal(size=nvis)
        channels.append(channel(lam0 * (1. + vel / c_kms), uu, vv, VV,
                                np.ones(nvis)))
    return dataset(channels)


@pytest.fixture
def home(tmp_path):
    """ A run directory with a data file and a (dummy) molecule file. """
    with open(tmp_path / 'molecule_co.inp', 'w') as f:
        f.write('! dummy molecular data\n')
    os.makedirs(tmp_path / 'scratch')
    write_data(make_dataset([-0.5, 0.5]), str(tmp_path / 'data.hdf5'))
    return tmp_path


@pytest.fixture
def write_config(home):
    """ Write a configuration module into home; returns its path. """

    def _write(name='mconfig_test.py', **overrides):
        settings = {'model': 'standard',
                    'parameters': standard_values,
                    'fix_params': [p for p in standard_values
                                   if p not in ('M_star', 'incl')],
                    'parameter_ranges': {'M_star': (0.5, 2.0),
                                         'incl': (20., 60.)},
                    'grid': grid_args,
                    'species': '12CO',
                    'transition': '2-1',
                    'size_arcsec': 8.0,
                    'npix': 32,
                    'data_file': 'data.hdf5',
                    'out_base': 'fitting/',
                    'scratch_dir': 'scratch',
                    'simulator': simulator()}
        settings.update(overrides)
        path = home / name
        with open(path, 'w') as f:
            for key, value in settings.items():
                f.write('%s = %r\n' % (key, value))
        return str(path)

    return _write
