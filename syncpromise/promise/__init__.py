# -*- coding: utf-8 -*-

from .aggregator import FulfillmentAggregator
from .decorators import wrap_promise
from .deferred import Deferred
from .errors import InvalidStateError
from .installer import DeferredRegistry

__all__ = ['Deferred', 'DeferredRegistry', 'FulfillmentAggregator',
           'InvalidStateError', 'wrap_promise']
