# -*- coding: utf-8 -*-

import logging
import pytest

from syncpromise.common import config
from syncpromise.promise import Deferred, InvalidStateError


def _pending():
    """Create a pending Deferred, and returns it with its resolve/reject."""
    callbacks = []
    df = Deferred(lambda ok, error: callbacks.extend((ok, error)))
    return df, callbacks[0], callbacks[1]


class TestDeferredSettlement(object):

    def teardown_method(self, method):
        config.reset()

    def test_resolve_value(self):
        value = object()
        df = Deferred.resolve(value)

        assert df.value() is value
        assert df.state == Deferred.FULFILLED
        assert df.is_fulfilled
        assert not df.is_pending and not df.is_rejected

    def test_reject_reason(self):
        df = Deferred.reject('boom')

        assert df.reason() == 'boom'
        assert df.state == Deferred.REJECTED

    def test_bare_deferred_is_pending(self):
        assert Deferred().state == Deferred.PENDING

    def test_synchronous_resolver(self):
        """The resolver is executed before the constructor returns."""
        df = Deferred(lambda ok, error: ok(3))
        assert df.value() == 3

    def test_resolve_without_value(self):
        df = Deferred(lambda ok, error: ok())
        assert df.is_fulfilled
        assert df.value() is None

    def test_synchronous_resolver_rejecting(self):
        df = Deferred(lambda ok, error: error('failure'))
        assert df.reason() == 'failure'

    def test_resolver_raising_error(self):
        """The Deferred is rejected with the message of the error."""
        def resolver(ok, error):
            raise ValueError('invalid value')

        df = Deferred(resolver)
        assert df.reason() == 'invalid value'

    def test_resolver_raising_after_settlement(self, caplog):
        def resolver(ok, error):
            ok('OK')
            raise ValueError('too late')

        df = Deferred(resolver)
        assert df.value() == 'OK'
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_delayed_settlement(self):
        df, ok, error = _pending()
        assert df.is_pending
        ok('later')
        assert df.value() == 'later'

    def test_first_settlement_wins(self, caplog):
        df, ok, error = _pending()
        ok(1)
        ok(2)
        error('nope')

        assert df.value() == 1
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 2

    def test_rejection_is_never_reverted(self):
        df, ok, error = _pending()
        error('first')
        ok('second')
        error('third')

        assert df.reason() == 'first'

    def test_resettle_warning_disabled_by_config(self, caplog):
        config._config_parser.set('config', 'warn_on_resettle', 'false')
        df, ok, error = _pending()
        ok(1)
        ok(2)

        assert df.value() == 1
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_value_of_pending_deferred(self):
        with pytest.raises(InvalidStateError):
            Deferred().value()

    def test_value_of_rejected_deferred(self):
        with pytest.raises(InvalidStateError):
            Deferred.reject('err').value()

    def test_reason_of_pending_deferred(self):
        with pytest.raises(InvalidStateError):
            Deferred().reason()

    def test_reason_of_fulfilled_deferred(self):
        with pytest.raises(InvalidStateError):
            Deferred.resolve(1).reason()

    def test_repr(self):
        assert repr(Deferred.resolve(1)) == 'Deferred(RESOLVE F)'
        assert repr(Deferred.reject(1)) == 'Deferred(REJECT R)'

        def load_model(ok, error):
            pass

        assert repr(Deferred(load_model)) == 'Deferred(load_model P)'


class TestDeferredChaining(object):

    def test_then_on_fulfilled_is_synchronous(self):
        counter = []
        Deferred.resolve('v').then(counter.append)
        assert counter == ['v']

    def test_then_on_pending(self):
        df, ok, error = _pending()
        counter = []
        child = df.then(counter.append)

        assert counter == []
        assert child.is_pending
        ok(5)
        assert counter == [5]
        assert child.value() == 5

    def test_children_notified_in_registration_order(self):
        df, ok, error = _pending()
        calls = []
        df.then(lambda v: calls.append('first'))
        df.then(lambda v: calls.append('second'))
        df.then(lambda v: calls.append('third'))
        ok(None)

        assert calls == ['first', 'second', 'third']

    def test_long_chain(self):
        df, ok, error = _pending()
        seen = []
        node = df
        for i in range(5):
            node = node.then(seen.append)
        ok('x')

        assert seen == ['x'] * 5
        assert node.value() == 'x'

    def test_replay_plain_value(self):
        """On a settled Deferred, the returned value becomes the new value."""
        child = Deferred.resolve(3).then(lambda v: v * 2)
        assert child.value() == 6

    def test_pending_chain_forwards_settlement_value(self):
        df, ok, error = _pending()
        child = df.then(lambda v: v * 2)
        seen = []
        child.then(seen.append)
        ok(3)

        assert child.value() == 3
        assert seen == [3]

    def test_chained_deferred_is_flattened(self):
        child = Deferred.resolve(1).then(lambda v: Deferred.resolve(42))

        assert child.is_fulfilled
        assert child.value() == 42

    def test_chained_deferred_receives_children(self):
        """Children registered later follow the Deferred returned."""
        inner, inner_ok, inner_error = _pending()
        outer, outer_ok, outer_error = _pending()
        child = outer.then(lambda v: inner)
        seen = []
        child.then(seen.append)

        outer_ok('outer')
        assert seen == []
        inner_ok('inner')
        assert seen == ['inner']

    def test_chained_rejected_deferred_rejects_children(self):
        outer, outer_ok, outer_error = _pending()
        child = outer.then(lambda v: Deferred.reject('inner failure'))
        grandchild = child.then()

        outer_ok('outer')
        assert grandchild.reason() == 'inner failure'

    def test_chained_deferred_keeps_its_own_children(self):
        inner, inner_ok, inner_error = _pending()
        own = inner.then()
        outer, outer_ok, outer_error = _pending()
        adopted = outer.then(lambda v: inner).then()

        outer_ok(1)
        inner_ok(2)
        assert own.value() == 2
        assert adopted.value() == 2

    def test_continuation_raising_error(self):
        def fail(value):
            raise ValueError('bad value %s' % value)

        child = Deferred.resolve(1).then(fail)
        assert child.reason() == 'bad value 1'

    def test_continuation_raising_error_in_pending_chain(self):
        def fail(value):
            raise RuntimeError('broken')

        df, ok, error = _pending()
        child = df.then(fail)
        grandchild = child.then()
        ok(1)

        assert child.is_rejected
        assert grandchild.reason() == 'broken'


class TestDeferredRejection(object):

    def test_rejection_propagates(self):
        df, ok, error = _pending()
        last = df.then().then().then()
        error('R')

        assert last.reason() == 'R'

    def test_rejection_skips_on_fulfilled(self):
        called = []
        child = Deferred.reject('R').then(called.append)

        assert called == []
        assert child.reason() == 'R'

    def test_catch_consumes_rejection(self):
        a, ok, error = _pending()
        handled = []
        b = a.catch(handled.append)
        c = b.then()
        d = a.then()
        error('R')

        assert handled == ['R']
        assert b.is_rejected
        assert c.is_fulfilled
        assert c.value() is None
        assert d.reason() == 'R'

    def test_catch_on_rejected_deferred(self):
        handled = []
        b = Deferred.reject('R').catch(handled.append)
        c = b.then()

        assert handled == ['R']
        assert c.value() is None

    def test_catch_on_fulfilled_deferred(self):
        handled = []
        b = Deferred.resolve('v').catch(handled.append)

        assert handled == []
        assert b.value() == 'v'

    def test_rejection_handler_raising_error(self, caplog):
        def handler(reason):
            raise RuntimeError('handler failure')

        b = Deferred.reject('R').catch(handler)
        c = b.then()

        assert c.reason() == 'R'
        assert any(r.levelno == logging.ERROR for r in caplog.records)

    def test_safeguard_logs_rejection(self, caplog):
        Deferred.reject('boom').safeguard()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(errors) == 1
        assert 'boom' in errors[0].getMessage()

    def test_safeguard_logs_exception(self, caplog):
        Deferred.reject(KeyError('key')).safeguard()

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert errors[0].exc_info is not None

    def test_safeguard_on_fulfilled_deferred(self, caplog):
        Deferred.resolve(1).safeguard()
        assert not [r for r in caplog.records if r.levelno == logging.ERROR]


class TestDeferredRace(object):

    def test_race_fastest_fulfilled(self):
        slow, slow_ok, slow_error = _pending()
        fast, fast_ok, fast_error = _pending()
        df = Deferred.race([slow, fast])

        fast_ok('fast')
        slow_ok('slow')
        assert df.value() == 'fast'

    def test_race_fastest_rejected(self):
        slow, slow_ok, slow_error = _pending()
        fast, fast_ok, fast_error = _pending()
        df = Deferred.race([slow, fast])

        fast_error('fast error')
        slow_ok('slow')
        assert df.reason() == 'fast error'

    def test_race_settled_input(self):
        df = Deferred.race([Deferred(), Deferred.resolve('done')])
        assert df.value() == 'done'

    def test_race_empty_list(self):
        with pytest.raises(ValueError):
            Deferred.race([])

    def test_race_empty_generator(self):
        with pytest.raises(ValueError):
            Deferred.race(df for df in [])


class TestDeferredLongChains(object):
    """Settling a chain must not depend on the Python recursion limit."""

    CHAIN_LENGTH = 5000

    def test_long_chain_fulfilled(self):
        df, ok, error = _pending()
        calls = []
        node = df
        for i in range(self.CHAIN_LENGTH):
            node = node.then(calls.append)
        ok('x')

        assert len(calls) == self.CHAIN_LENGTH
        assert node.value() == 'x'

    def test_long_chain_rejected(self):
        df, ok, error = _pending()
        node = df
        for i in range(self.CHAIN_LENGTH):
            node = node.then(lambda v: None)
        error('R')

        assert node.reason() == 'R'

    def test_long_chain_after_consumed_rejection(self):
        df, ok, error = _pending()
        handled = []
        node = df.catch(handled.append)
        for i in range(self.CHAIN_LENGTH):
            node = node.then()
        error('R')

        assert handled == ['R']
        assert node.is_fulfilled
        assert node.value() is None

    def test_long_chain_with_failing_continuation(self):
        def fail(value):
            raise ValueError('broken')

        df, ok, error = _pending()
        node = df.then(fail)
        for i in range(self.CHAIN_LENGTH):
            node = node.then()
        ok(1)

        assert node.reason() == 'broken'

    def test_long_chain_moved_to_chained_deferred(self):
        inner, inner_ok, inner_error = _pending()
        outer, outer_ok, outer_error = _pending()
        node = outer.then(lambda v: inner)
        for i in range(self.CHAIN_LENGTH):
            node = node.then()

        outer_ok('outer')
        assert node.is_pending
        inner_ok('inner')
        assert node.value() == 'inner'

    def test_wide_and_deep_tree(self):
        df, ok, error = _pending()
        leaves = []
        for branch in range(5):
            node = df
            for depth in range(1000):
                leaves.append(node.then())
                node = node.then()
            leaves.append(node)
        ok('v')

        assert len(leaves) == 5 * 1001
        assert all(leaf.value() == 'v' for leaf in leaves)

    def test_wide_and_deep_tree_rejected(self):
        df, ok, error = _pending()
        leaves = []
        for branch in range(5):
            node = df
            for depth in range(1000):
                leaves.append(node.then())
                node = node.then()
            leaves.append(node)
        error('R')

        assert all(leaf.reason() == 'R' for leaf in leaves)

    def test_descendants_notified_before_next_sibling(self):
        df, ok, error = _pending()
        calls = []
        first = df.then(lambda v: calls.append('first'))
        first.then(lambda v: calls.append('first child'))
        df.then(lambda v: calls.append('second'))
        ok(None)

        assert calls == ['first', 'first child', 'second']


class TestDeferredHandlerChaining(object):

    def test_then_from_rejection_handler(self):
        """A node chained inside the handler sees the rejection consumed."""
        df, ok, error = _pending()
        chained = []

        def handler(reason):
            chained.append(node.then())

        node = df.catch(handler)
        error('R')

        assert chained[0].is_fulfilled
        assert chained[0].value() is None

    def test_consumed_flag_cleared_when_handler_raises(self, caplog):
        def handler(reason):
            raise RuntimeError('handler failure')

        node = Deferred.reject('R').catch(handler)
        assert node.then().reason() == 'R'
