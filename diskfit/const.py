"""
    General constants in cgs units (unless noted), shared by the disk model,
    the image handling, and the visibility transforms.
"""
import numpy as np
import scipy.constants as sc


# astronomical conversions
M_sun = 1.99e33			# [g]
M_earth = 5.97219e27		# [g]
AU = 1.4959787066e13		# [cm]
pc = 3.0856776e18		# [cm]
G = sc.G * 1e3			# [cm3 g-1 s-2]
kB = sc.k * 1e7			# [erg K-1]
cc = sc.c * 1e2			# [cm s-1]
c_kms = sc.c * 1e-3		# [km s-1]

# angles
deg = np.pi / 180.		# [radians]
arcsec = np.pi / (180. * 3600)	# [radians]

# gas properties
amu = 1.6605402e-24		# [g]
mu_gas = 2.37			# mean molecular weight of circumstellar gas
m_H = 1.6733e-24		# [g]
X_H2 = 0.8			# n_H2 / n_gas

# CO isotopologue abundances (relative to H nuclei)
f_12CO = 7.5e-5
X_12CO = 2 * f_12CO
X_13CO = X_12CO / 69.
X_C18O = X_12CO / 557.

# multiply against rho_gas to get the molecular number density
number_densities = {'12CO': X_H2 * X_12CO / (mu_gas * amu),
                    '13CO': X_H2 * X_13CO / (mu_gas * amu),
                    'C18O': X_H2 * X_C18O / (mu_gas * amu)}

# molecule names used by the RADMC-3D input files
molnames = {'12CO': 'co', '13CO': '13co', 'C18O': 'c18o'}

# rest-frame wavelengths [microns], keyed by species + transition
lam0s = {'12CO2-1': cc / 230.538e9 * 1e4,
         '13CO2-1': cc / 220.39868e9 * 1e4,
         '13CO3-2': cc / 330.58797e9 * 1e4,
         'C18O2-1': cc / 219.56036e9 * 1e4,
         '12CO3-2': cc / 345.79599e9 * 1e4}

# gas density below which the molecular density is forced to zero
# (n_H2 = 100 cm-3, average of the diffuse ISM)
rho_gas_critical = (100. / X_H2) * mu_gas * amu		# [g cm-3]

# RADMC-3D images come out slightly larger than the commanded size
RADMC_SIZEAU_SHIFT = 1.4233758746704833e-5


def fftspace(width, N):
    """
    Symmetric coordinate array of N (even) points spanning [-width, width),
    with the middle point (index N/2) landing on 0.
    """
    if N % 2 != 0:
        raise ValueError('N must be even.')
    dx = width * 2. / N
    return -width + np.arange(N) * dx
