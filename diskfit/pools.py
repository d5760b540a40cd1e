"""
    Worker pools for the posterior evaluations.

    The transport (serial, local processes, or MPI ranks) is picked at run
    time with schwimmbad; every pool is wrapped in evaluation_pool so the
    controller inspects the status of each evaluation instead of catching
    exceptions across process boundaries.
"""
import schwimmbad
from diskfit.errors import FatalEvaluationError
from diskfit.posterior import Status


def choose_pool(mpi=False, processes=1, initializer=None, initargs=()):
    """
    A schwimmbad SerialPool, MultiPool or MPIPool. initializer(*initargs) runs
    once in each MultiPool worker process.
    """
    if mpi:
        return schwimmbad.MPIPool()
    elif processes > 1:
        return schwimmbad.MultiPool(processes=processes,
                                    initializer=initializer,
                                    initargs=initargs)
    return schwimmbad.SerialPool()


def resolve(result):
    """ The value of an Evaluation, raising if the worker hit a fatal error. """
    if result.status is Status.FATAL:
        raise FatalEvaluationError(result.params, result.cause)
    return result.value


class evaluation_pool:
    """
    Blocking map over a schwimmbad pool for callables that return Evaluation
    objects. Used as the ``pool`` of emcee and as the ``workers`` map of the
    scipy optimizers.
    """

    def __init__(self, pool):
        self.pool = pool

    def map(self, fn, iterable):
        results = list(self.pool.map(fn, iterable))
        return [resolve(r) for r in results]

    def is_master(self):
        return self.pool.is_master()

    def wait(self):
        return self.pool.wait()

    def close(self):
        return self.pool.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()
