"""
    Private scratch directories for single forward-model evaluations.
"""
import os
import shutil
import logging
import tempfile
import subprocess
from diskfit import radmc_disk

logger = logging.getLogger(__name__)


class workspace:
    """
    A scratch directory that holds the simulator inputs and outputs of one
    model evaluation. Use as a context manager: the directory is created on
    entry, and on exit the previous working directory is restored and the
    directory removed, whether or not the evaluation succeeded.
    """

    def __init__(self, home, scratch=None, simulator=("radmc3d",)):
        self.home = home
        self.scratch = scratch
        self.simulator = list(simulator)
        self.path = None
        self.origin = None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.release()
        return False

    def acquire(self):
        self.origin = os.getcwd()
        self.path = tempfile.mkdtemp(prefix='diskfit_', dir=self.scratch)
        return self.path

    def stage(self, fnames):
        """ Copy the run-wide static input files into the workspace. """
        for fname in fnames:
            shutil.copy(os.path.join(self.home, fname), self.path)

    def activate(self):
        os.chdir(self.path)

    def write_grid(self, grid):
        grid.write_grid(self.path)

    def write_model(self, pars, grid, species):
        radmc_disk.write_model(pars, self.path, grid, species)

    def write_lambda(self, lams):
        radmc_disk.write_lambda(lams, self.path)

    def invoke_simulator(self, incl, posang, npix, sizeau):
        """
        Run the ray tracer on the staged inputs. A non-zero exit status raises
        subprocess.CalledProcessError, a missing executable raises OSError.
        """
        cmd = self.simulator + ['image',
                                'incl', '%.6f' % incl,
                                'posang', '%.6f' % posang,
                                'npix', '%d' % npix,
                                'loadlambda',
                                'sizeau', '%.8f' % sizeau]
        logger.debug('running %s in %s', ' '.join(cmd), self.path)
        subprocess.run(cmd, cwd=self.path, stdout=subprocess.DEVNULL,
                       stderr=subprocess.PIPE, check=True)

    def release(self):
        """ Return to the previous working directory and delete the workspace. """
        try:
            if self.origin is not None:
                os.chdir(self.origin)
        finally:
            self.origin = None
            if self.path is not None:
                path, self.path = self.path, None
                try:
                    shutil.rmtree(path)
                except OSError:
                    logger.error('could not remove scratch directory %s', path)
                    raise
