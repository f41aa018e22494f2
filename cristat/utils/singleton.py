import threading


class Singleton(type):
    """Metaclass giving one instance per class, built on first call.

    Construction is double-checked under a lock so concurrent first callers
    all get the same instance. Arguments of later calls are ignored.
    """
    _instances = {}
    _lock = threading.RLock()   # singletons may build other singletons in __init__

    def __call__(cls, *args, **kwargs):
        if cls not in cls._instances:
            with cls._lock:
                if cls not in cls._instances:
                    cls._instances[cls] = super().__call__(*args, **kwargs)
        return cls._instances[cls]

    def clear(cls):
        # drops the cached instance, used by tests
        with Singleton._lock:
            Singleton._instances.pop(cls, None)
