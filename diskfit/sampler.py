"""
    Ensemble MCMC in checkpointed loops.

    The walkers are advanced with emcee's affine-invariant stretch move and
    the chain is recorded in an emcee HDFBackend (chain.h5). After every loop
    the number of finished loops is stored with the chain and the walker
    positions are exported to pos0.npy, one column per walker. An interrupted
    run resumes from the last stored sample. Each loop draws its random
    numbers from its own (seed, loop) stream, which makes a resumed run
    reproduce an uninterrupted one.
"""
import os
import logging
import numpy as np
import emcee

logger = logging.getLogger(__name__)


def stretch_move(a=2.0, live_dangerously=False):
    """
    The stretch move, with scale factors drawn from g(z) ~ 1/sqrt(z) on
    [1/a, a]. emcee updates the two halves of the ensemble in turn, each
    against the other (fixed) half.
    """
    return emcee.moves.StretchMove(a=a, live_dangerously=live_dangerously)


class ensemble:

    def __init__(self, nwalkers, ndim, lnprob_fn, pool=None, a=2.0,
                 test=False, progress=False):

        if not test:
            if nwalkers < 2 * ndim:
                raise ValueError('need at least %d walkers for %d parameters, '
                                 'got %d' % (2 * ndim, ndim, nwalkers))
            if nwalkers % 2 != 0:
                raise ValueError('the number of walkers must be even, got %d'
                                 % nwalkers)

        self.nwalkers, self.ndim = nwalkers, ndim
        self.lnprob_fn = lnprob_fn
        self.pool = pool
        self.moves = stretch_move(a, live_dangerously=test)
        self.progress = progress


    def run_schedule(self, pos0, samples, loops, outdir, seed=None,
                     lnprob=None, start=0):
        """
        Run loops start, ..., loops-1 of ``samples`` iterations each, starting
        from walker positions pos0 [ndim, nwalkers]. lnprob are the known
        log-probabilities of pos0, if any. With start = 0 a new chain file is
        begun, otherwise the stored chain is extended. Returns the final
        positions.
        """
        pos0 = np.asarray(pos0, dtype=float)
        if pos0.shape != (self.ndim, self.nwalkers):
            raise ValueError('starting positions must have shape (%d, %d), '
                             'got %s' % (self.ndim, self.nwalkers, pos0.shape))

        backend = emcee.backends.HDFBackend(os.path.join(outdir, 'chain.h5'))
        if start == 0:
            backend.reset(self.nwalkers, self.ndim)
            partial = 0
        else:
            # steps of an interrupted loop already in the chain
            partial = backend.iteration - _loop_attrs(backend)[1]

        sampler = emcee.EnsembleSampler(self.nwalkers, self.ndim,
                                        self.lnprob_fn, pool=self.pool,
                                        moves=self.moves, backend=backend)

        coords = pos0.T.copy()
        for iloop in range(start, loops):
            nsteps = samples - partial if iloop == start else samples
            if nsteps > 0:
                if seed is None:
                    rstate = None
                else:
                    rstate = np.random.RandomState([seed, iloop]).get_state()
                state = emcee.State(coords, log_prob=lnprob,
                                    random_state=rstate)
                state = sampler.run_mcmc(state, nsteps,
                                         progress=self.progress)
                coords, lnprob = state.coords, state.log_prob

            _mark_loop(backend, iloop + 1)
            np.save(os.path.join(outdir, 'pos0.npy'), coords.T)
            logger.info('finished loop %d of %d; mean acceptance fraction '
                        '%.3f', iloop + 1, loops,
                        np.mean(sampler.acceptance_fraction))

        return coords.T


def _mark_loop(backend, loops_done):
    """ Record with the chain that loops_done loops are complete. """
    iteration = backend.iteration
    with backend.open('a') as f:
        f[backend.name].attrs['loops'] = loops_done
        f[backend.name].attrs['loop_iteration'] = iteration


def _loop_attrs(backend):
    with backend.open() as f:
        attrs = f[backend.name].attrs
        return int(attrs.get('loops', 0)), int(attrs.get('loop_iteration', 0))


def load_checkpoint(outdir):
    """
    Returns (pos0 [ndim, nwalkers], lnprob [nwalkers], loops done) from the
    last stored sample, or None if outdir holds no samples yet.
    """
    chainfile = os.path.join(outdir, 'chain.h5')
    if not os.path.exists(chainfile):
        return None

    backend = emcee.backends.HDFBackend(chainfile, read_only=True)
    if not backend.initialized or backend.iteration == 0:
        return None

    state = backend.get_last_sample()
    loops_done, loop_iteration = _loop_attrs(backend)
    if backend.iteration > loop_iteration:
        logger.warning('loop %d was interrupted after %d steps; it will be '
                       'completed first', loops_done + 1,
                       backend.iteration - loop_iteration)

    return state.coords.T, state.log_prob, loops_done


def write_samples(outdir):
    """ Save the flattened chain and log-probabilities of a finished run. """
    reader = emcee.backends.HDFBackend(os.path.join(outdir, 'chain.h5'),
                                       read_only=True)
    np.save(os.path.join(outdir, 'flatchain.npy'), reader.get_chain(flat=True))
    np.save(os.path.join(outdir, 'lnprob.npy'), reader.get_log_prob(flat=True))
