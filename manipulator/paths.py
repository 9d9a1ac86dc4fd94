"""
Single handy place for paths.
All of them can be overridden from the environment.
"""

import os
from os.path import join

HOME = os.getenv('HOME')
if HOME is None:
    HOME = ''

CACHES_DIR_ENVIRON     = 'MANIPULATOR_CACHES_DIR'
ASSETS_DIR_ENVIRON     = 'MANIPULATOR_ASSETS_DIR'
READABLE_ROOTS_ENVIRON = 'MANIPULATOR_READABLE_ROOTS'

def caches_dir():
    return os.getenv(CACHES_DIR_ENVIRON) or join(HOME, '.cache')

def assets_dir():
    """Root of the local asset library, or None if there is no asset library."""
    return os.getenv(ASSETS_DIR_ENVIRON) or None

def readable_roots():
    """Directories that may be read from. None means no restriction."""
    val = os.getenv(READABLE_ROOTS_ENVIRON)
    if not val:
        return None
    return [root for root in val.split(os.pathsep) if root]
