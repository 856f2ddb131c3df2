# -*- coding: utf-8 -*-

"""Selection of the Deferred type used by an application.

The application creates one `DeferredRegistry` at startup, with the native
deferred type of its host if there is one, and uses the registry as a factory.
Nothing global is modified.
"""

import logging

from ..common import config
from .deferred import Deferred

_logger = logging.getLogger(__name__)


class DeferredRegistry(object):
    """Keep the Deferred type used by an application.

    Attributes:
        native (type): deferred type provided by the host, if any.
        installed (type): Deferred type installed by `install()`, if any.
    """

    def __init__(self, native=None):
        self.native = native
        self.installed = None

    def install(self, force=None):
        """Install `Deferred` as default type, if there is no native type.

        Calling it several times has no further effect.

        Args:
            force (boolean, optional): if True, install `Deferred` even if a
                native type is known. If None, the 'force_install' config
                entry is used.
        Returns:
            type: the type now used by `create()`.
        """
        if force is None:
            force = config.get('force_install')

        if self.installed is None and (force or self.native is None):
            _logger.debug('Install %s as default deferred type (force: %s)',
                          Deferred.__name__, force)
            self.installed = Deferred
        return self.deferred_type

    @property
    def deferred_type(self):
        """Type used by `create()`.

        Raises:
            LookupError: if no type is installed, and there is no native type.
        """
        if self.installed is not None:
            return self.installed
        if self.native is not None:
            return self.native
        raise LookupError('No deferred type available. '
                          'DeferredRegistry.install() must be called first.')

    def create(self, resolver=None):
        """Create a new deferred value of the registered type."""
        if resolver is None:
            return self.deferred_type()
        return self.deferred_type(resolver)
