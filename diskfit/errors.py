"""
    Exceptions raised while evaluating the posterior.

    Anything derived from DiskFitException means "this parameter vector has
    zero posterior density" and is absorbed inside a single evaluation.
    Everything else is an infrastructure or programming fault.
"""


class DiskFitException(Exception):
    pass


class ModelException(DiskFitException):
    """The parameter vector cannot be interpreted under the chosen model."""


class ImageException(DiskFitException):
    """The simulator output could not be read."""


class FatalEvaluationError(RuntimeError):
    """A worker reported an unrecoverable failure for a parameter vector."""

    def __init__(self, params, cause):
        self.params = params
        self.cause = cause
        super().__init__('Unforeseen error with parameter vector %s\n%s'
                         % (list(params), cause))
