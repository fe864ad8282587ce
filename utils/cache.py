# utils/cache.py
import threading


class QueryCache:
    """
    Small in-process memo for report queries, keyed by the exact tuple of
    arguments. Entries live until clear() is called.
    """

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def get_or_compute(self, key, compute):
        with self._lock:
            if key in self._data:
                return self._data[key]
        value = compute()
        with self._lock:
            return self._data.setdefault(key, value)

    def clear(self):
        with self._lock:
            self._data.clear()

    def __contains__(self, key):
        return key in self._data

    def __len__(self):
        return len(self._data)
