# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

import logging

from .common import config
from .common import log
from .promise import Deferred, DeferredRegistry

_logger = logging.getLogger(__name__)


def bootstrap(native=None):
    """Prepare syncpromise for an application, at startup.

    Load the config file, apply the log levels it defines, then create the
    registry of the deferred type and install `Deferred` in it.

    Args:
        native (type, optional): deferred type provided by the host, if any.
    Returns:
        DeferredRegistry: registry to use as factory of deferred values.
    """
    config.load()
    log.set_debug_mode(config.get('debug_mode'))
    log.set_logs_level(config.get('log_levels'))

    registry = DeferredRegistry(native)
    deferred_type = registry.install()
    _logger.debug('Deferred type in use: %s', deferred_type.__name__)
    return registry


__all__ = ['Deferred', 'DeferredRegistry', 'bootstrap']
