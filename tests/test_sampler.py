import os
import numpy as np
import pytest
import emcee
import schwimmbad
from diskfit.errors import FatalEvaluationError
from diskfit.pools import evaluation_pool, choose_pool
from diskfit.posterior import Evaluation, Status
from diskfit.sampler import ensemble, load_checkpoint, write_samples


class gaussian_target:

    def __init__(self, fatal_below=None):
        self.fatal_below = fatal_below

    def __call__(self, p):
        params = tuple(float(x) for x in p)
        if self.fatal_below is not None and p[0] < self.fatal_below:
            return Evaluation(Status.FATAL, np.nan, params, 'Traceback: boom')
        return Evaluation(Status.OK, -0.5 * np.sum(np.asarray(p)**2), params)


def serial_pool():
    return evaluation_pool(schwimmbad.SerialPool())


def start(ndim, nwalkers, seed=0):
    return np.random.default_rng(seed).normal(size=(ndim, nwalkers))


def test_choose_pool():
    assert isinstance(choose_pool(), schwimmbad.SerialPool)


def test_degenerate_stretch(tmp_path):
    # with a = 1 every scale factor is exactly 1, so proposals land on the
    # walkers' current positions
    pos0 = np.array([[0.3, -1.2]])
    sampler = ensemble(2, 1, gaussian_target(), pool=serial_pool(), a=1.0,
                       test=True)
    pos = sampler.run_schedule(pos0, 5, 1, str(tmp_path), seed=1)
    assert np.allclose(pos, pos0)


@pytest.mark.parametrize('nwalkers', [3, 5, 7])
def test_walker_count_checked(nwalkers):
    with pytest.raises(ValueError):
        ensemble(nwalkers, 3, gaussian_target(), pool=serial_pool())
    ensemble(nwalkers, 3, gaussian_target(), pool=serial_pool(), test=True)


def test_start_shape_checked(tmp_path):
    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    with pytest.raises(ValueError):
        sampler.run_schedule(np.zeros((8, 2)), 5, 1, str(tmp_path))


def test_checkpoint_files(tmp_path):
    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    pos = sampler.run_schedule(start(2, 8), 10, 3, str(tmp_path), seed=5)

    reader = emcee.backends.HDFBackend(str(tmp_path / 'chain.h5'),
                                       read_only=True)
    assert reader.iteration == 30
    assert reader.get_chain().shape == (30, 8, 2)
    assert reader.get_log_prob().shape == (30, 8)
    assert np.array_equal(reader.get_last_sample().coords, pos.T)
    assert np.array_equal(np.load(tmp_path / 'pos0.npy'), pos)

    pos0, lnprob, loops = load_checkpoint(str(tmp_path))
    assert loops == 3
    assert np.array_equal(pos0, pos)
    assert np.allclose(lnprob, -0.5 * np.sum(pos**2, axis=0))

    write_samples(str(tmp_path))
    assert np.load(tmp_path / 'flatchain.npy').shape == (240, 2)
    assert np.load(tmp_path / 'lnprob.npy').shape == (240,)


def test_no_checkpoint(tmp_path):
    assert load_checkpoint(str(tmp_path)) is None


def test_resume_reproduces_uninterrupted_run(tmp_path):
    full, part = tmp_path / 'full', tmp_path / 'part'
    os.makedirs(full)
    os.makedirs(part)
    pos0 = start(2, 8)

    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    sampler.run_schedule(pos0, 20, 4, str(full), seed=11)

    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    sampler.run_schedule(pos0, 20, 2, str(part), seed=11)

    # a new sampler, as after a restart
    pos, lnprob, done = load_checkpoint(str(part))
    assert done == 2
    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    sampler.run_schedule(pos, 20, 4, str(part), seed=11, lnprob=lnprob,
                         start=done)

    chain1 = emcee.backends.HDFBackend(str(full / 'chain.h5'),
                                       read_only=True).get_chain()
    chain2 = emcee.backends.HDFBackend(str(part / 'chain.h5'),
                                       read_only=True).get_chain()
    assert chain1.shape == chain2.shape == (80, 8, 2)
    assert np.allclose(chain1, chain2)
    assert np.allclose(chain1.mean(axis=(0, 1)), chain2.mean(axis=(0, 1)))


def test_fatal_evaluation_stops_sampler(tmp_path):
    sampler = ensemble(8, 2, gaussian_target(fatal_below=-100.),
                       pool=serial_pool())
    pos0 = start(2, 8)
    pos0[0, 3] = -200.
    with pytest.raises(FatalEvaluationError, match='boom'):
        sampler.run_schedule(pos0, 5, 1, str(tmp_path))
    assert load_checkpoint(str(tmp_path)) is None


def test_rejected_values_pass_through():
    pool = serial_pool()
    target = gaussian_target()
    values = pool.map(target, [np.zeros(2), np.ones(2)])
    assert values == [0., -1.]


def test_interrupted_loop_is_completed(tmp_path):
    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    sampler.run_schedule(start(2, 8), 10, 1, str(tmp_path), seed=3)

    # four more steps reach the chain before the run dies mid-loop
    backend = emcee.backends.HDFBackend(str(tmp_path / 'chain.h5'))
    extra = emcee.EnsembleSampler(8, 2, lambda p: -0.5 * np.sum(p**2),
                                  backend=backend)
    extra.run_mcmc(None, 4)
    last = backend.get_last_sample()

    pos, lnprob, done = load_checkpoint(str(tmp_path))
    assert done == 1
    assert np.array_equal(pos, last.coords.T)
    assert np.array_equal(lnprob, last.log_prob)
    # the exported positions still belong to the finished loop
    assert not np.array_equal(np.load(tmp_path / 'pos0.npy'), pos)

    sampler = ensemble(8, 2, gaussian_target(), pool=serial_pool())
    final = sampler.run_schedule(pos, 10, 3, str(tmp_path), seed=3,
                                 lnprob=lnprob, start=done)

    reader = emcee.backends.HDFBackend(str(tmp_path / 'chain.h5'),
                                       read_only=True)
    assert reader.iteration == 30
    assert np.array_equal(reader.get_last_sample().coords, final.T)
    assert np.array_equal(np.load(tmp_path / 'pos0.npy'), final)
    assert load_checkpoint(str(tmp_path))[2] == 3
