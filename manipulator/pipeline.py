"""
Pipeline: the transform engine.

A pipeline holds an ordered list of stages. Running it feeds the frame to the
first stage, that stage's output to the second, and so on. An empty
pipeline returns the frame it was given.
"""

import sys
import logging
from abc import ABC, abstractmethod

from .frame import Frame
from .stage import Stage


logger = logging.getLogger(__name__)

class Pipeline(ABC):
    """Base pipeline class"""
    def __init__(self, verbose=False, debug=False):
        self.stages = []
        self.count  = 0
        self.verbose = verbose
        self.debug   = debug
        if debug:
            logger.setLevel(logging.DEBUG)
        elif verbose:
            logger.setLevel(logging.INFO)

    def addLinearPipeline(self, stages:list):
        """Replace the stages with stages. A pipeline only runs the stages it was last given."""
        for stage in stages:
            if not isinstance(stage, Stage):
                raise TypeError(f"{stage!r} is not a Stage")
        self.stages = list(stages)
        return self

    @abstractmethod
    def run(self, f:Frame) -> Frame:
        """Run a frame through the pipeline and return the result."""

    def print_stats(self, out=sys.stdout):
        for stage in self.stages:
            name = stage.__class__.__name__
            print(f"{name}: calls: {stage.count}  mean: {stage.t_mean:.2}s  stddev: {stage.t_stddev:.2}",
                  file=out)


class SingleThreadedPipeline(Pipeline):
    """Runs the stages one after the other in the caller's thread."""

    def run(self, f:Frame) -> Frame:
        self.count += 1
        logger.info("== run %s", f)
        for stage in self.stages:
            logger.debug("<%s> processing %s", stage.__class__.__name__, f)
            f = stage._run_frame(f)     # pylint: disable=protected-access
        return f


def apply(f:Frame, actions) -> Frame:
    """Apply the actions to f in order."""
    return SingleThreadedPipeline().addLinearPipeline(list(actions)).run(f)
