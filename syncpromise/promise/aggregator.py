# -*- coding: utf-8 -*-

from functools import partial
import logging

from .deferred import Deferred

_logger = logging.getLogger(__name__)


class FulfillmentAggregator(object):
    """Bookkeeping of a `Deferred.all()` call.

    It counts the fulfilled inputs, and keeps their values in the order of the
    inputs. The root Deferred is fulfilled with the list of values when all
    inputs are fulfilled, or rejected by the first input rejected.

    Attributes:
        count (int): number of inputs fulfilled so far.
        target (int): number of inputs.
        root (Deferred<list>): Deferred returned to the caller.
        results (list): one slot per input.
    """

    def __init__(self, target, root):
        self.count = 0
        self.target = target
        self.root = root
        self.results = [None] * target

    def register(self, deferred, index):
        deferred.then(partial(self.fulfill, index), self.fail)

    def fulfill(self, index, value):
        self.results[index] = value
        self.count += 1

        if self.count == self.target and self.root.is_pending:
            self.root._resolve(self.results)

    def fail(self, reason):
        if not self.root.is_pending:
            _logger.debug('%r is already settled. Reason ignored: %r',
                          self.root, reason)
            return
        self.root._reject(reason)

    def settle_empty(self):
        if self.target == 0:
            self.root._resolve(self.results)


def aggregate(deferreds):
    """Build the Deferred of a `Deferred.all()` call.

    Args:
        deferreds (list of Deferred)
    Returns:
        Deferred<list>: the root Deferred of the aggregator.
    """
    deferreds = list(deferreds)
    aggregator = FulfillmentAggregator(len(deferreds), Deferred(_name='ALL'))

    for index, deferred in enumerate(deferreds):
        aggregator.register(deferred, index)
    aggregator.settle_empty()

    return aggregator.root
