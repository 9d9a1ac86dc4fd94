"""
The orchestrator: resolve -> load -> transform -> encode and write.

manipulate() is the coroutine that does one request. The first error from any
step is raised unchanged and nothing is written after it.
"""

import sys
import json
import asyncio
import logging
import argparse

from .backends import Backends, default_backends
from .loader import load
from .pipeline import SingleThreadedPipeline
from .reference import resolve
from .request import ManipulateOptions, parse_request
from .writer import ManipulationResult, default_destination_dir, encode_and_write

logger = logging.getLogger(__name__)


async def manipulate(reference:str, actions=(), options:ManipulateOptions=None, *,
                     backends:Backends=None, destination_dir=None,
                     pipeline=None) -> ManipulationResult:
    """
    :param reference: the image. A path, file:, http(s):, s3:, data:, assets-library: or ph: URI.
    :param actions: stages to apply, in order.
    :param options: how to encode the result.
    :param backends: collaborators. Defaults to default_backends().
    :param destination_dir: where to write. Defaults to <caches directory>/ImageManipulator.
    :param pipeline: the Pipeline to run the actions in; a new SingleThreadedPipeline if None.
    """
    if options is None:
        options = ManipulateOptions()
    if backends is None:
        backends = default_backends()
    if pipeline is None:
        pipeline = SingleThreadedPipeline()

    ref = resolve(reference)
    f = await load(ref, backends)
    f = pipeline.addLinearPipeline(list(actions)).run(f)
    if destination_dir is None:
        destination_dir = default_destination_dir(backends.filesystem)
    result = encode_and_write(f, options, destination_dir, backends.filesystem)
    logger.info("manipulated %s -> %s (%sx%s)", ref.reference[:80], result.destination,
                result.width, result.height)
    return result


def manipulate_sync(reference, actions=(), options=None, **kwargs) -> ManipulationResult:
    """Run manipulate() to completion in a new event loop."""
    return asyncio.run(manipulate(reference, actions, options, **kwargs))


async def manipulate_request(payload, **kwargs) -> ManipulationResult:
    """Validate a request payload and run it."""
    req = parse_request(payload)
    return await manipulate(req.reference, req.actions, req.options, **kwargs)


# A little test program
if __name__ == '__main__':
    parser = argparse.ArgumentParser(description="Apply image manipulation actions to an image.",
                                     formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    parser.add_argument('image', type=str, help="image path or URI")
    parser.add_argument('--actions', default='[]', help='JSON list of actions, e.g. [{"rotate": 90}]')
    parser.add_argument('--format', default='jpeg', help='jpeg, jpg or png')
    parser.add_argument('--compress', default=1.0, type=float, help='JPEG quality between 0 and 1')
    parser.add_argument('--outdir', help='write here instead of the caches directory')
    parser.add_argument('--stats', action='store_true', help='print per-stage timing')
    parser.add_argument('--debug', action='store_true')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO)
    request = parse_request({'reference': args.image,
                             'actions': json.loads(args.actions),
                             'options': {'format': args.format, 'compress': args.compress}})
    p = SingleThreadedPipeline(debug=args.debug)
    r = manipulate_sync(request.reference, request.actions, request.options,
                        destination_dir=args.outdir, pipeline=p)
    print(json.dumps(r.to_dict()))
    if args.stats:
        p.print_stats(out=sys.stderr)
