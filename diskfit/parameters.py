"""
    Parameter sets of the supported disk models.

    Each model kind is a frozen dataclass carrying its own fields, its own
    range checks, its log-prior, and the structure profiles consumed by
    radmc_disk. A sampled vector is turned into one of them by
    convert_vector.
"""
import importlib.util
from dataclasses import dataclass, fields
from functools import lru_cache
import numpy as np
from diskfit.const import AU, M_sun, G, deg
from diskfit.errors import ModelException


# ordered parameter names for each model kind
registered_params = {
    "standard": ["M_star", "r_c", "T_10", "q", "gamma", "logM_gas", "ksi",
                 "dpc", "incl", "PA", "vel", "mu_RA", "mu_DEC"],
    "truncated": ["M_star", "r_in", "r_out", "T_10", "q", "gamma", "gamma_e",
                  "logM_gas", "ksi", "dpc", "incl", "PA", "vel", "mu_RA",
                  "mu_DEC"],
}


@dataclass(frozen=True)
class ParametersStandard:
    M_star: float	# stellar mass [M_sun]
    r_c: float		# characteristic radius [AU]
    T_10: float		# temperature at 10 AU [K]
    q: float		# temperature gradient exponent
    gamma: float	# surface density exponent
    logM_gas: float	# log10 disk gas mass [M_sun]
    ksi: float		# microturbulence [km/s]
    dpc: float		# distance [pc]
    incl: float		# inclination [deg]
    PA: float		# position angle [deg]
    vel: float		# systemic velocity [km/s]
    mu_RA: float	# centroid offset in RA [arcsec]
    mu_DEC: float	# centroid offset in DEC [arcsec]

    model = "standard"

    def validate(self):
        _check_common(self)
        if not self.r_c > 0.:
            raise ModelException('r_c must be positive, got %s' % self.r_c)
        if not self.gamma < 2.:
            raise ModelException('gamma must be < 2, got %s' % self.gamma)

    def lnprior(self, grid, dpc_prior=None):
        if self.r_c * AU > grid.r_out:
            raise ModelException('r_c = %s AU lies outside the model grid'
                                 % self.r_c)
        return _lnprior_common(self, dpc_prior)

    def sigma(self, r):
        """ Gas surface density [g/cm^2] at cylindrical radius r [cm]. """
        r_c = self.r_c * AU
        M_gas = 10**self.logM_gas * M_sun
        Sig_c = (2. - self.gamma) * M_gas / (2 * np.pi * r_c**2)
        return Sig_c * (r / r_c)**(-self.gamma) * \
               np.exp(-(r / r_c)**(2. - self.gamma))

    def temperature(self, r):
        return _temperature(self, r)

    def omega(self, r):
        return _omega(self, r)


@dataclass(frozen=True)
class ParametersTruncated:
    M_star: float	# stellar mass [M_sun]
    r_in: float		# inner edge [AU]
    r_out: float	# outer edge [AU]
    T_10: float		# temperature at 10 AU [K]
    q: float		# temperature gradient exponent
    gamma: float	# surface density exponent inside r_out
    gamma_e: float	# surface density exponent beyond r_out
    logM_gas: float	# log10 gas mass between r_in and r_out [M_sun]
    ksi: float		# microturbulence [km/s]
    dpc: float		# distance [pc]
    incl: float		# inclination [deg]
    PA: float		# position angle [deg]
    vel: float		# systemic velocity [km/s]
    mu_RA: float	# centroid offset in RA [arcsec]
    mu_DEC: float	# centroid offset in DEC [arcsec]

    model = "truncated"

    def validate(self):
        _check_common(self)
        if not 0. < self.r_in < self.r_out:
            raise ModelException('need 0 < r_in < r_out, got %s, %s'
                                 % (self.r_in, self.r_out))
        if not self.gamma < 2.:
            raise ModelException('gamma must be < 2, got %s' % self.gamma)
        if not self.gamma_e > self.gamma:
            raise ModelException('the outer taper must be steeper than the '
                                 'inner profile (gamma_e > gamma)')

    def lnprior(self, grid, dpc_prior=None):
        if self.r_in * AU < grid.r_in or self.r_out * AU > grid.r_out:
            raise ModelException('disk edges (%s, %s) AU fall outside the '
                                 'model grid' % (self.r_in, self.r_out))
        return _lnprior_common(self, dpc_prior)

    def sigma(self, r):
        r_in, r_out = self.r_in * AU, self.r_out * AU
        M_gas = 10**self.logM_gas * M_sun
        Sig_c = (2. - self.gamma) * M_gas / (2 * np.pi * r_out**self.gamma *
                (r_out**(2. - self.gamma) - r_in**(2. - self.gamma)))
        inner = Sig_c * (r / r_out)**(-self.gamma)
        outer = Sig_c * (r / r_out)**(-self.gamma_e)
        return np.where(r < r_in, 0., np.where(r <= r_out, inner, outer))

    def temperature(self, r):
        return _temperature(self, r)

    def omega(self, r):
        return _omega(self, r)


model_types = {"standard": ParametersStandard,
               "truncated": ParametersTruncated}


def _check_common(pars):
    for f in fields(pars):
        if not np.isfinite(getattr(pars, f.name)):
            raise ModelException('%s is not finite' % f.name)
    if not pars.M_star > 0.:
        raise ModelException('M_star must be positive, got %s' % pars.M_star)
    if not pars.T_10 > 0.:
        raise ModelException('T_10 must be positive, got %s' % pars.T_10)
    if not 0. <= pars.q <= 1.:
        raise ModelException('q must lie in [0, 1], got %s' % pars.q)
    if not pars.ksi > 0.:
        raise ModelException('ksi must be positive, got %s' % pars.ksi)
    if not pars.dpc > 0.:
        raise ModelException('dpc must be positive, got %s' % pars.dpc)


def _lnprior_common(pars, dpc_prior):
    # geometric prior on the inclination, p(i) ~ sin(i)
    if not 0. < pars.incl < 180.:
        raise ModelException('incl must lie in (0, 180), got %s' % pars.incl)
    lnp = np.log(np.sin(pars.incl * deg))

    if dpc_prior is not None:
        mu, sig = dpc_prior
        lnp += -0.5 * (pars.dpc - mu)**2 / sig**2

    return lnp


def _temperature(pars, r):
    return pars.T_10 * (r / (10. * AU))**(-pars.q)


def _omega(pars, r):
    return np.sqrt(G * pars.M_star * M_sun / r**3)


def fit_params(model, fix_params):
    """ The free parameters of a model, in registered order. """
    if model not in registered_params:
        raise ValueError('unknown model "%s", choose from %s'
                         % (model, list(registered_params)))
    return [p for p in registered_params[model] if p not in fix_params]


def convert_vector(p, model, fix_params, **kwargs):
    """
    Build the parameter set of ``model`` from the sampled vector ``p`` (the
    free parameters, in registered order) and the values of the fixed
    parameters given as keyword arguments.
    """
    free = fit_params(model, fix_params)
    p = np.atleast_1d(np.asarray(p, dtype=float))
    if p.shape != (len(free),):
        raise ModelException('expected %d free parameters %s, got %d'
                             % (len(free), free, p.size))

    values = {name: kwargs[name] for name in fix_params if name in kwargs}
    values.update(zip(free, p))
    missing = [name for name in registered_params[model]
               if name not in values]
    if missing:
        raise ModelException('no value for fixed parameters %s' % missing)

    pars = model_types[model](**{name: float(values[name])
                                 for name in registered_params[model]})
    pars.validate()
    return pars


@lru_cache(maxsize=None)
def load_prior(prior_file):
    """
    Import the user-defined log-prior from a python file; it must define
    lnprior(pars, grid). Loaded once per process.
    """
    spec = importlib.util.spec_from_file_location('user_prior', prior_file)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module.lnprior
