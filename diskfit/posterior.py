"""
    The posterior probability of a parameter vector: one forward model of the
    disk with RADMC-3D, compared with the visibility data.
"""
import os
import uuid
import logging
import traceback
from enum import Enum
from dataclasses import dataclass
from typing import Any, Optional, Tuple
import numpy as np
from diskfit.const import molnames
from diskfit.errors import DiskFitException, ImageException
from diskfit.parameters import convert_vector, load_prior
from diskfit.radmc_disk import size_au
from diskfit.velocity import doppler_shift
from diskfit.workspace import workspace
from diskfit.image import imread, im_to_sky
from diskfit.gridding import correct_image
from diskfit import visibilities

logger = logging.getLogger(__name__)


class Status(Enum):
    OK = "ok"
    REJECTED = "rejected"
    FATAL = "fatal"


@dataclass(frozen=True)
class Evaluation:
    """Outcome of one posterior evaluation, safe to send between processes."""
    status: Status
    value: float
    params: Tuple[float, ...]
    cause: Optional[str] = None


@dataclass(frozen=True)
class RunContext:
    """Everything an evaluation needs; built once per run, never mutated."""
    home: str
    dataset: Any
    model: str
    fix_params: Tuple[str, ...]
    values: Any
    grid: Any
    species: str
    npix: int
    size_arcsec: float
    dl: float
    half_pix: float
    plans: Tuple[Any, ...]
    simulator: Tuple[str, ...] = ("radmc3d",)
    scratch: Optional[str] = None
    dpc_prior: Optional[Tuple[float, float]] = None
    prior_file: Optional[str] = None

    @property
    def static_files(self):
        return ["radmc3d.inp", "wavelength_micron.inp", "lines.inp",
                "molecule_" + molnames[self.species] + ".inp"]


# run contexts known to this process, by run key
_contexts = {}


def register_context(key, context):
    """ Make context available to posteriors with this key in this process. """
    _contexts[key] = context


def registered_context(key):
    try:
        return _contexts[key]
    except KeyError:
        raise RuntimeError('no run context %s in process %d'
                           % (key, os.getpid())) from None


class posterior:
    """
    Callable log-posterior over the free parameters. An instance holds only
    the key of its RunContext, which every process looks up in its own
    registry; so a task sent to a worker carries the key and the parameter
    vector, never the data or the interpolation plans. Worker processes get
    the context once, through register_context (see fit.run).
    """

    def __init__(self, context):
        self.key = uuid.uuid4().hex
        register_context(self.key, context)

    @property
    def context(self):
        return registered_context(self.key)

    def convert(self, p):
        ctx = self.context
        return convert_vector(p, ctx.model, ctx.fix_params, **ctx.values)

    def lnprior(self, pars):
        ctx = self.context
        if ctx.prior_file is not None:
            return load_prior(ctx.prior_file)(pars, ctx.grid)
        return pars.lnprior(ctx.grid, ctx.dpc_prior)

    def _simulate(self, pars, ws):
        """ Run RADMC-3D for pars in workspace ws; return the sky image. """
        ctx = self.context

        sizeau_desired, sizeau_command = size_au(ctx.size_arcsec, pars.dpc)

        ws.stage(ctx.static_files)
        ws.activate()
        ws.write_grid(ctx.grid)
        ws.write_model(pars, ctx.grid, ctx.species)

        # observed wavelengths --> disk rest frame
        ws.write_lambda(doppler_shift(ctx.dataset.lams, pars.vel))
        ws.invoke_simulator(pars.incl, pars.PA, ctx.npix, sizeau_command)

        try:
            img = imread()
        except (OSError, ValueError) as e:
            raise ImageException('failed to read the synthesized image for '
                                 '%s: %s' % (pars, e))

        skim = im_to_sky(img, pars.dpc)
        correct_image(skim)
        return skim

    def _model_channels(self, pars, skim):
        ctx = self.context
        for i, dchan in enumerate(ctx.dataset):
            mvis = ctx.plans[i](visibilities.transform(skim, i))

            # RADMC-3D images are offset by half a pixel from the phase centre
            mvis = visibilities.phase_shift(mvis, dchan.uu, dchan.vv,
                                            pars.mu_RA + ctx.half_pix,
                                            pars.mu_DEC + ctx.half_pix)
            yield dchan, mvis

    def lnprob(self, p):
        """
        Log-posterior of the free parameter vector p. Returns -inf for
        vectors the model cannot handle; any other failure is re-raised.
        """
        ctx = self.context
        try:
            with workspace(ctx.home, ctx.scratch, ctx.simulator) as ws:
                pars = self.convert(p)
                lnpr = self.lnprior(pars)

                skim = self._simulate(pars, ws)

                lnL = np.sum([visibilities.lnprob(dchan, mvis) for dchan, mvis
                              in self._model_channels(pars, skim)])
                lnp = lnL + lnpr

        except DiskFitException as e:
            logger.info('%s: %s', type(e).__name__, e)
            return -np.inf
        except Exception:
            logger.error('Unforeseen error with parameter vector %s', list(p))
            raise

        if not np.isfinite(lnp):
            return -np.inf
        return float(lnp)

    def evaluate(self, p, sign=1.):
        params = tuple(float(x) for x in np.atleast_1d(p))
        try:
            lnp = self.lnprob(p)
        except Exception:
            return Evaluation(Status.FATAL, np.nan, params,
                              traceback.format_exc())
        status = Status.OK if np.isfinite(lnp) else Status.REJECTED
        return Evaluation(status, sign * lnp, params)

    def __call__(self, p):
        return self.evaluate(p)

    def negative(self, p):
        """ Same as calling, but with the value negated (for minimizers). """
        return self.evaluate(p, sign=-1.)

    def model_visibilities(self, p):
        """
        Model visibilities of every data channel for the vector p, with no
        error recovery.
        """
        ctx = self.context
        pars = self.convert(p)
        with workspace(ctx.home, ctx.scratch, ctx.simulator) as ws:
            skim = self._simulate(pars, ws)
            return [mvis for dchan, mvis in self._model_channels(pars, skim)]
