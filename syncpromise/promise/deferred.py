# -*- coding: utf-8 -*-

import logging

from ..common import config
from .errors import InvalidStateError

_logger = logging.getLogger(__name__)


class Deferred(object):
    """It represents the eventual outcome of an operation.

    A Deferred is either pending, fulfilled with a value, or rejected with a
    reason. Continuations registered with `then()` and `catch()` are notified
    when it's settled.

    Nothing is scheduled: every continuation is called synchronously, on the
    call stack of whoever settles the Deferred (or of `then()` itself, if the
    Deferred is already settled when the continuation is registered).

    The Deferred is not thread-safe. If it's shared between threads, the
    settlement calls must be synchronized by the caller.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    def __init__(self, resolver=None, _name=None):
        """Constructor of the Deferred.

        Without resolver, the Deferred stays pending until it's settled
        internally (that's how `then()`, `all()` and `resolve()` build their
        nodes).

        If a resolver is given, it's called before the constructor returns,
        with two callables as arguments:
        - `resolve(value=None)` fulfills the Deferred.
        - `reject(reason)` rejects it.
        Only the first call of one of them has an effect. If the resolver
        raises an exception before settling the Deferred, it's rejected with
        the exception's message.

        Args:
            resolver (callable, optional): takes the two callables described
                above.
            _name (str): if set, name used when converted to text.
        """
        self._state = self.PENDING
        self._result = None
        self._reason = None
        self._children = []
        self._on_fulfilled = None
        self._on_rejected = None
        self._rejection_consumed = False
        self._name = _name or getattr(resolver, '__name__', '???')

        if resolver is None:
            return

        def resolve(value=None):
            self._resolve(value)

        def reject(reason):
            self._reject(reason)

        try:
            resolver(resolve, reject)
        except Exception as error:
            if self._state == self.PENDING:
                self._reject(str(error))
            else:
                _logger.exception('Resolver of %r raised after settlement. '
                                  'The error is ignored.', self)

    @property
    def state(self):
        return self._state

    @property
    def is_pending(self):
        return self._state == self.PENDING

    @property
    def is_fulfilled(self):
        return self._state == self.FULFILLED

    @property
    def is_rejected(self):
        return self._state == self.REJECTED

    def value(self):
        """Returns the value of a fulfilled Deferred.

        Raises:
            InvalidStateError: if the Deferred is pending or rejected.
        """
        if self._state != self.FULFILLED:
            raise InvalidStateError('Deferred is not fulfilled')
        return self._result

    def reason(self):
        """Returns the rejection reason of a rejected Deferred.

        Raises:
            InvalidStateError: if the Deferred is pending or fulfilled.
        """
        if self._state != self.REJECTED:
            raise InvalidStateError('Deferred is not rejected')
        return self._reason

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new Deferred notified when this one is settled.

        The new Deferred is settled with the same value as `self` once
        `on_fulfilled` has been called with it. If `on_fulfilled` raises, the
        new Deferred is rejected with the error message instead.
        If `on_fulfilled` returns another Deferred, the continuations
        registered later on the new Deferred are moved to the returned one.

        When `self` is rejected, `on_rejected` is called with the reason. If
        it's set, the rejection is consumed: the continuations of the new
        Deferred see a Deferred fulfilled with None. Otherwise, the rejection
        is propagated as is.

        If `self` is already settled, the callback is called before this
        method returns. In that case, a Deferred returned by `on_fulfilled`
        is returned instead of the new node, and a plain (not None) value
        returned by `on_fulfilled` becomes the value of the new node.

        Args:
            on_fulfilled (callable, optional): receives the value of `self`.
            on_rejected (callable, optional): receives the reason of `self`.
        Returns:
            Deferred: new Deferred chained to `self`.
        """
        child = Deferred(_name=_continuation_name(on_fulfilled, on_rejected))
        child._on_fulfilled = on_fulfilled
        child._on_rejected = on_rejected

        if self._state == self.PENDING:
            self._children.append(child)
            return child

        if self._state == self.FULFILLED or self._rejection_consumed:
            returned = child._resolve(self._result)
            if isinstance(returned, Deferred):
                return returned
            if returned is not None and child._state == self.FULFILLED:
                child._result = returned
        else:
            child._reject(self._reason)
        return child

    def catch(self, on_rejected):
        """Create a new Deferred with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`
        """
        return self.then(None, on_rejected)

    def safeguard(self):
        """Log the rejection of this Deferred, if it happens.

        It's aimed to be called at the end of a chain whose errors would be
        silently ignored otherwise. The reason is logged as ERROR.
        """
        def guard(reason):
            if isinstance(reason, BaseException):
                _logger.error('[SAFEGUARD] %r', self, exc_info=reason)
            else:
                _logger.error('[SAFEGUARD] %r: %s', self, reason)

        self.catch(guard)

    def __repr__(self):
        return 'Deferred(%s %s)' % (self._name, self._state[0].upper())

    @classmethod
    def resolve(cls, value):
        """Create a Deferred already fulfilled with the value."""
        deferred = cls(_name='RESOLVE')
        deferred._resolve(value)
        return deferred

    @classmethod
    def reject(cls, reason):
        """Create a Deferred already rejected for the reason specified."""
        deferred = cls(_name='REJECT')
        deferred._reject(reason)
        return deferred

    @classmethod
    def all(cls, deferreds):
        """Create a Deferred fulfilled when all the deferreds are fulfilled.

        The values are kept in the order of the `deferreds` list, whatever the
        order of completion. If one of the deferreds is rejected, the result
        is rejected with the same reason; later rejections are ignored.

        Args:
            deferreds (list of Deferred)
        Returns:
            Deferred<list>
        """
        from .aggregator import aggregate

        return aggregate(deferreds)

    @classmethod
    def race(cls, deferreds):
        """Create a Deferred settled like the first of the deferreds to settle.

        Args:
            deferreds (list of Deferred)
        Returns:
            Deferred
        Raises:
            ValueError: If the list is empty.
        """
        deferreds = list(deferreds)
        if not deferreds:
            raise ValueError('Empty deferred list in Deferred.race()')

        root = cls(_name='RACE')

        def resolve_once(value):
            if root._state == cls.PENDING:
                root._resolve(value)

        def reject_once(reason):
            if root._state == cls.PENDING:
                root._reject(reason)

        for deferred in deferreds:
            deferred.then(resolve_once, reject_once)
        return root

    def _resolve(self, value=None):
        """Fulfill the Deferred and notify all its descendants.

        Returns:
            the value returned by the `on_fulfilled` continuation, if any.
        """
        work = []
        returned = self._fulfill(value, work)
        _drain(work)
        return returned

    def _reject(self, reason):
        """Reject the Deferred and notify all its descendants."""
        work = []
        self._fail(reason, work)
        _drain(work)

    def _fulfill(self, value, work):
        """Fulfill this node only. Its children are pushed on `work`."""
        if self._state != self.PENDING:
            self._warn_settled('fulfill', value)
            return None

        returned = None
        if self._on_fulfilled is not None:
            try:
                returned = self._on_fulfilled(value)
            except Exception as error:
                _logger.debug('Continuation of %r raised: %r', self, error)
                self._fail(str(error), work)
                return None

        self._state = self.FULFILLED
        self._result = value

        if isinstance(returned, Deferred):
            returned._adopt_children(self._children, work)

        children, self._children = self._children, []
        self._notify(children, work)
        return returned

    def _fail(self, reason, work):
        """Reject this node only. Its children are pushed on `work`."""
        if self._state != self.PENDING:
            self._warn_settled('reject', reason)
            return

        self._state = self.REJECTED
        self._reason = reason

        if self._on_rejected is not None:
            # Set first: a then() called by the handler sees it consumed.
            self._rejection_consumed = True
            try:
                self._on_rejected(reason)
            except Exception:
                self._rejection_consumed = False
                _logger.exception('Rejection handler of %r raised. The '
                                  'rejection is propagated.', self)

        children, self._children = self._children, []
        self._notify(children, work)

    def _adopt_children(self, children, work):
        """Take the children of another node, and settle them if possible."""
        inherited = children[:]
        del children[:]

        if self._state == self.PENDING:
            self._children.extend(inherited)
        else:
            self._notify(inherited, work)

    def _notify(self, children, work):
        """Push the settlement of `children`, according to this node's state.

        `work` is a stack: children are pushed in reverse order, so they are
        settled in registration order, each one with its descendants before
        the next sibling.
        """
        if self._state == self.FULFILLED:
            action, payload = Deferred._fulfill, self._result
        elif self._rejection_consumed:
            action, payload = Deferred._fulfill, None
        else:
            action, payload = Deferred._fail, self._reason
        work.extend((child, action, payload) for child in reversed(children))

    def _warn_settled(self, action, payload):
        if config.get('warn_on_resettle'):
            _logger.warning('Try to %s %r already settled. It will be '
                            'ignored: %r', action, self, payload)


def _continuation_name(on_fulfilled, on_rejected):
    if not on_rejected:
        return getattr(on_fulfilled, '__name__', '???')
    elif not on_fulfilled:
        return '<None, %s>' % getattr(on_rejected, '__name__', '???')
    return '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                         getattr(on_rejected, '__name__', '???'))


def _drain(work):
    """Settle the nodes pushed on `work`, until there is none left.

    A node settled here pushes its own children instead of settling them, so
    the stack depth doesn't grow with the length of the chain.
    """
    while work:
        node, action, payload = work.pop()
        action(node, payload, work)
