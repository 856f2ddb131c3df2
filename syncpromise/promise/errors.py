# -*- coding: utf-8 -*-


class InvalidStateError(Exception):
    """A Deferred accessor was called while it's not in the matching state."""
    pass
