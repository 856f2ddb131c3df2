# -*- coding: utf-8 -*-

from functools import wraps

from .deferred import Deferred


def wrap_promise(f):
    """Decorator who converts the result in a Deferred object.

    If the function decorated returns a Deferred, it's transmitted as is.
    Else, a new Deferred is fulfilled with the returned value. If the function
    raises an exception, the Deferred is rejected with the error message.
    """
    @wraps(f)
    def wrapper(*args, **kwargs):
        try:
            result = f(*args, **kwargs)
        except Exception as error:
            return Deferred.reject(str(error))

        if isinstance(result, Deferred):
            return result
        return Deferred.resolve(result)

    return wrapper
