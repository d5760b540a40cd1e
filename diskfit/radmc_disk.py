"""
    Writers for the RADMC-3D input files: the spatial grid, the static
    configuration files shared by every model evaluation, and the gas
    structure of a parametric disk.
"""
import os
import numpy as np
from diskfit.const import AU, kB, mu_gas, m_H, number_densities, molnames, \
    rho_gas_critical, RADMC_SIZEAU_SHIFT


class radmc_grid:

    def __init__(self, args):

        # radial grid in [cm]
        self.nr, self.nt = int(args["nr"]), int(args["ntheta"])
        self.np = 1
        self.r_in = args["r_in"] * AU
        self.r_out = args["r_out"] * AU
        if not (0 < self.r_in < self.r_out):
            raise ValueError('grid needs 0 < r_in < r_out, got %s, %s'
                             % (args["r_in"], args["r_out"]))
        self.r_walls = np.logspace(np.log10(self.r_in), np.log10(self.r_out),
                                   self.nr + 1)
        self.r_centers = np.average([self.r_walls[:-1], self.r_walls[1:]],
                                    axis=0)

        # theta (altitude angle from pole toward equator) grid in [rad],
        # concentrated toward the midplane
        self.t_offset = args.get("t_offset", 0.1)
        t_min = args.get("t_min", 0.0) + self.t_offset
        t_max = args.get("t_max", 0.5 * np.pi) + self.t_offset
        t_ = np.logspace(np.log10(t_min), np.log10(t_max), self.nt + 1)
        self.t_walls = 0.5 * np.pi + self.t_offset - t_[::-1]
        self.t_centers = np.average([self.t_walls[:-1], self.t_walls[1:]],
                                    axis=0)

        # a single azimuthal cell (axisymmetric)
        self.p_walls = np.array([0., 2 * np.pi])

        # number of cells
        self.ncells = self.nr * self.nt * self.np


    def write_grid(self, outdir, fileout='amr_grid.inp'):
        """ Write the spatial grid to file """
        header = '1\n0\n100\n0\n1 1 0\n'
        header += '{:d} {:d} {:d}'.format(self.nr, self.nt, self.np)
        tosave = np.concatenate([self.r_walls, self.t_walls, self.p_walls])
        np.savetxt(os.path.join(outdir, fileout), tosave, header=header,
                   comments='')


    def write_config_files(self, outdir, species, nw=100, logw_min=-1.0,
                           logw_max=4.0):
        """
        Write the RADMC-3D setup files that stay fixed for a whole run. The
        molecular data file (molecule_<mol>.inp) has to be supplied by hand.
        """
        with open(os.path.join(outdir, 'radmc3d.inp'), 'w') as f:
            f.write('incl_dust = 0\n')
            f.write('incl_lines = 1\n')
            f.write('incl_freefree = 0\n')
            f.write('lines_mode = 1\n')
            f.write('tgas_eq_tdust = 0\n')
            f.write('rto_style = 1\n')
            f.write('camera_tracemode = 1\n')

        w_centers = np.logspace(logw_min, logw_max, nw)
        np.savetxt(os.path.join(outdir, 'wavelength_micron.inp'), w_centers,
                   header=str(nw) + '\n', comments='')

        with open(os.path.join(outdir, 'lines.inp'), 'w') as f:
            f.write('2\n1\n')
            f.write('%s    leiden    0    0    0\n' % molnames[species])



class radmc_structure:
    """
    Gas structure of a parametric disk on a radmc_grid. The surface density,
    temperature and rotation profiles come from the parameter variant.
    """

    def __init__(self, pars, grid, species):

        self.pars = pars
        self.species = species

        # spherical grid and the corresponding cylindrical quantities
        self.rr, self.tt = np.meshgrid(grid.r_centers, grid.t_centers)
        self.rcyl = self.rr * np.sin(self.tt)
        self.zcyl = self.rr * np.cos(self.tt)

        # default header for outputs
        self.hdr = '1\n%d' % grid.ncells

        self.set_temperature()
        self.set_density()
        self.set_turbulence()
        self.set_vgas()
        self.set_nmol()


    def set_temperature(self):
        # vertically isothermal
        self.temperature = self.pars.temperature(self.rcyl)


    def set_density(self):
        """
        Vertically isothermal hydrostatic equilibrium around the midplane.
        """
        cs = np.sqrt(kB * self.temperature / (mu_gas * m_H))
        Hp = cs / self.pars.omega(self.rcyl)
        self.rho_gas = self.pars.sigma(self.rcyl) * \
                       np.exp(-0.5 * (self.zcyl / Hp)**2) / \
                       (np.sqrt(2 * np.pi) * Hp)


    def set_turbulence(self):
        # [km/s] --> [cm/s]
        self.dVturb = self.pars.ksi * 1e5 * np.ones_like(self.rcyl)


    def set_vgas(self):
        # Keplerian rotation about the midplane radius
        self.vphi = self.pars.omega(self.rcyl) * self.rcyl


    def set_nmol(self):
        self.nmol = np.where(self.rho_gas > rho_gas_critical,
                             self.rho_gas * number_densities[self.species], 0.)


    def write(self, outdir):
        """ Write the structure files into outdir. """
        smol = molnames[self.species]
        np.savetxt(os.path.join(outdir, 'numberdens_' + smol + '.inp'),
                   np.ravel(self.nmol), fmt='%.6e', header=self.hdr,
                   comments='')
        np.savetxt(os.path.join(outdir, 'gas_temperature.inp'),
                   np.ravel(self.temperature), fmt='%.6e', header=self.hdr,
                   comments='')
        np.savetxt(os.path.join(outdir, 'microturbulence.inp'),
                   np.ravel(self.dVturb), fmt='%.6e', header=self.hdr,
                   comments='')
        vgas = np.ravel(self.vphi)
        foos = np.zeros_like(vgas)
        np.savetxt(os.path.join(outdir, 'gas_velocity.inp'),
                   list(zip(foos, foos, vgas)), fmt='%.6e', header=self.hdr,
                   comments='')


def write_model(pars, outdir, grid, species):
    """ Compute the disk structure for pars and write it into outdir. """
    radmc_structure(pars, grid, species).write(outdir)


def write_lambda(lams, outdir, fileout='camera_wavelength_micron.inp'):
    """ The list of wavelengths [microns] RADMC-3D images with loadlambda. """
    lams = np.atleast_1d(lams)
    np.savetxt(os.path.join(outdir, fileout), lams,
               header=str(len(lams)) + '\n', comments='')


def size_au(size_arcsec, dpc):
    """
    The image size [AU] needed to cover size_arcsec at dpc, and the (slightly
    smaller) size to command so RADMC-3D produces the desired one.
    """
    sizeau_desired = size_arcsec * dpc
    sizeau_command = sizeau_desired / (1. + RADMC_SIZEAU_SHIFT)
    return sizeau_desired, sizeau_command
