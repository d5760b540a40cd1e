"""
    Run configuration, read from a python module (see configs/).
"""
import os
import importlib.util
from dataclasses import dataclass, field
from typing import Any, Optional, Tuple
from diskfit.const import lam0s, molnames
from diskfit.parameters import registered_params, fit_params


@dataclass(frozen=True)
class run_config:
    model: str
    parameters: Any			# values of every registered parameter
    fix_params: Tuple[str, ...]
    grid: Any				# nr, ntheta, r_in [AU], r_out [AU]
    species: str
    transition: str
    size_arcsec: float
    npix: int
    data_file: str
    out_base: str
    parameter_ranges: Any = None	# {name: (lo, hi)} for the optimizer
    exclude: Any = None			# [[v_lo, v_hi], ...] in km/s
    pos0: Optional[str] = None		# .npy file, shape (ndim, nwalkers)
    samples: int = 100
    loops: int = 1
    stretch_a: float = 2.0
    seed: Optional[int] = None
    MaxFuncEvals: int = 1000
    popsize: int = 15
    simulator: Tuple[str, ...] = ("radmc3d",)
    scratch_dir: Optional[str] = None
    dpc_prior: Optional[Tuple[float, float]] = None
    prior_file: Optional[str] = None
    progress: bool = False
    path: str = field(default='', compare=False)

    @property
    def lam0(self):
        """ Rest wavelength of the fitted line [microns]. """
        return lam0s[self.species + self.transition]

    @property
    def free_params(self):
        return fit_params(self.model, self.fix_params)


required = ['model', 'parameters', 'grid', 'species', 'transition',
            'size_arcsec', 'npix', 'data_file', 'out_base']


def load_config(cfg_file):
    """ Import the configuration module cfg_file and check its contents. """
    if not os.path.exists(cfg_file):
        raise OSError('no configuration file %s' % cfg_file)

    spec = importlib.util.spec_from_file_location('diskfit_config', cfg_file)
    inp = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(inp)

    missing = [key for key in required if not hasattr(inp, key)]
    if missing:
        raise ValueError('%s does not define %s' % (cfg_file, missing))

    kwargs = {f: getattr(inp, f) for f in run_config.__dataclass_fields__
              if f != 'path' and hasattr(inp, f)}
    kwargs['fix_params'] = tuple(kwargs.get('fix_params', ()))
    kwargs['simulator'] = tuple(kwargs.get('simulator', ("radmc3d",)))
    cfg = run_config(path=os.path.abspath(cfg_file), **kwargs)

    if cfg.model not in registered_params:
        raise ValueError('unknown model "%s", choose from %s'
                         % (cfg.model, list(registered_params)))
    unknown = [p for p in cfg.fix_params if p not in registered_params[cfg.model]]
    if unknown:
        raise ValueError('cannot fix %s, not parameters of the %s model'
                         % (unknown, cfg.model))
    missing = [p for p in registered_params[cfg.model]
               if p not in cfg.parameters]
    if missing:
        raise ValueError('no values given for parameters %s' % missing)
    if cfg.species not in molnames:
        raise ValueError('unknown species "%s"' % cfg.species)
    if cfg.species + cfg.transition not in lam0s:
        raise ValueError('no rest wavelength for %s %s'
                         % (cfg.species, cfg.transition))
    if cfg.npix % 2 != 0:
        raise ValueError('npix must be even, got %d' % cfg.npix)

    return cfg
