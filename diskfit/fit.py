"""
    Drive a fit: read the configuration and data, set up the posterior, and
    run either the ensemble sampler or the global optimizer.
"""
import os
import shutil
import logging
import numpy as np
from scipy.optimize import differential_evolution
from diskfit.config import load_config
from diskfit.const import arcsec
from diskfit.data import read_data, conjugate
from diskfit.velocity import velocities, generate_vel_mask
from diskfit.radmc_disk import radmc_grid
from diskfit.visibilities import fftfreq, plan_interpolate
from diskfit.posterior import RunContext, posterior, register_context
from diskfit.pools import choose_pool, evaluation_pool
from diskfit.sampler import ensemble, load_checkpoint, write_samples

logger = logging.getLogger(__name__)


def outfmt(out_base, run_index):
    return out_base + "run%02d/" % run_index


def prepare_outdir(out_base, run_index=None, config_file=None):
    """
    Returns (outdir, fresh). Without a run_index the first unused run
    directory is created; with one, an existing directory is resumed.
    """
    if run_index is None:
        run_index = 0
        while os.path.exists(outfmt(out_base, run_index)):
            run_index += 1
        fresh = True
    else:
        fresh = not os.path.exists(outfmt(out_base, run_index))

    outdir = outfmt(out_base, run_index)
    if fresh:
        logger.info('creating %s', outdir)
        os.makedirs(outdir)
        if config_file is not None:
            shutil.copy(config_file, outdir)
    else:
        logger.info('resuming from %s', outdir)

    return outdir, fresh


def build_context(cfg, home):
    """ Everything the posterior needs, computed once per run. """

    datafile = os.path.join(home, cfg.data_file)

    # channel selection
    vels = velocities(cfg.lam0, read_data(datafile).lams)
    mask = generate_vel_mask(cfg.exclude, vels)
    logger.info('fitting %d of %d channels', np.sum(mask), len(mask))
    for vel, use in zip(vels, mask):
        logger.info('  %+8.3f km/s  %s', vel, 'used' if use else 'excluded')
    if not np.any(mask):
        raise ValueError('every channel is excluded by %s' % (cfg.exclude,))

    # model visibilities follow the opposite sign convention to the data
    dset = conjugate(read_data(datafile, mask))

    # static RADMC-3D inputs
    grid = radmc_grid(cfg.grid)
    grid.write_config_files(home, cfg.species)

    # image pixel scale [radians] and the FFT grid [klambda]
    dl = cfg.size_arcsec * arcsec / cfg.npix
    half_pix = dl / (2. * arcsec)
    uu = vv = np.fft.fftshift(fftfreq(cfg.npix, dl)) * 1e-3
    plans = tuple(plan_interpolate(dchan, uu, vv) for dchan in dset)

    scratch = cfg.scratch_dir
    if scratch is not None:
        scratch = os.path.join(home, scratch)
    prior_file = cfg.prior_file
    if prior_file is not None:
        prior_file = os.path.join(home, prior_file)

    context = RunContext(home=home, dataset=dset, model=cfg.model,
                         fix_params=cfg.fix_params,
                         values=dict(cfg.parameters), grid=grid,
                         species=cfg.species, npix=cfg.npix,
                         size_arcsec=cfg.size_arcsec, dl=dl,
                         half_pix=half_pix, plans=plans,
                         simulator=cfg.simulator, scratch=scratch,
                         dpc_prior=cfg.dpc_prior, prior_file=prior_file)

    for fname in context.static_files:
        if not os.path.exists(os.path.join(home, fname)):
            raise OSError('%s is missing from %s' % (fname, home))

    return context


def run_sampling(cfg, post, outdir, fresh, pool, test=False, home=''):
    """ The MCMC path: run the ensemble sampler in checkpointed loops. """
    ndim = len(cfg.free_params)

    ckpt = None if fresh else load_checkpoint(outdir)
    if ckpt is None:
        if cfg.pos0 is None:
            raise ValueError('no starting positions (pos0) configured')
        pos0, lnprob, start = np.load(os.path.join(home, cfg.pos0)), None, 0
    else:
        pos0, lnprob, start = ckpt
        logger.info('%d of %d loops already done', start, cfg.loops)

    if pos0.ndim != 2 or pos0.shape[0] != ndim:
        raise ValueError('starting positions must have shape (%d, nwalkers), '
                         'got %s' % (ndim, pos0.shape))

    sampler = ensemble(pos0.shape[1], ndim, post, pool=pool, a=cfg.stretch_a,
                       test=test, progress=cfg.progress)
    pos = sampler.run_schedule(pos0, cfg.samples, cfg.loops, outdir,
                               seed=cfg.seed, lnprob=lnprob, start=start)
    write_samples(outdir)

    return pos


def run_optimization(cfg, post, outdir, pool):
    """ The optimization path: differential evolution on -log posterior. """
    free = cfg.free_params
    ranges = cfg.parameter_ranges or {}
    missing = [p for p in free if p not in ranges]
    if missing:
        raise ValueError('no parameter_ranges given for %s' % missing)
    bounds = [tuple(ranges[p]) for p in free]

    ndim = len(free)
    maxiter = max(1, cfg.MaxFuncEvals // (cfg.popsize * ndim) - 1)
    logger.info('optimizing %s for up to %d generations', free, maxiter)

    res = differential_evolution(post.negative, bounds, maxiter=maxiter,
                                 popsize=cfg.popsize, polish=False,
                                 updating='deferred', workers=pool.map,
                                 seed=cfg.seed)
    logger.info('best log-posterior %.4f at %s', -res.fun,
                dict(zip(free, res.x)))

    np.save(os.path.join(outdir, 'optimum.npy'), res.x)
    return res


LOG_FORMAT = '%(asctime)s %(name)s %(levelname)s: %(message)s'


def attach_log(outdir):
    handler = logging.FileHandler(os.path.join(outdir, 'diskfit.log'))
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.getLogger().addHandler(handler)
    return handler


def detach_log(handler):
    logging.getLogger().removeHandler(handler)
    handler.close()


def serve(pool):
    """ MPI worker ranks: take the run context, then evaluate until released. """
    shared = pool.comm.bcast(None, root=0)
    if shared is not None:
        register_context(*shared)
        pool.wait()


def run(config_file, run_index=None, optim=False, mpi=False, processes=1,
        test=False):
    """
    Fit the data described by config_file. Returns the output directory (on
    MPI worker ranks, which only serve evaluations, returns None).

    The run context is handed to every worker process once: by broadcast to
    the MPI ranks, or by the initializer of the local process pool.
    """
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    if mpi:
        pool = choose_pool(mpi=True)
        if not pool.is_master():
            serve(pool)
            return None

    shared = None
    try:
        cfg = load_config(config_file)
        home = os.path.dirname(cfg.path)
        outdir, fresh = prepare_outdir(os.path.join(home, cfg.out_base),
                                       run_index, cfg.path)
        handler = attach_log(outdir)
        try:
            post = posterior(build_context(cfg, home))
            shared = (post.key, post.context)
        finally:
            if shared is None:
                detach_log(handler)
    finally:
        if mpi:
            # None tells the workers to stop
            pool.comm.bcast(shared, root=0)

    try:
        if not mpi:
            pool = choose_pool(processes=processes,
                               initializer=register_context, initargs=shared)
        with evaluation_pool(pool) as pool:
            if optim:
                run_optimization(cfg, post, outdir, pool)
            else:
                run_sampling(cfg, post, outdir, fresh, pool, test, home)
    finally:
        detach_log(handler)

    return outdir
