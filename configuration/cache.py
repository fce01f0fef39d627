"""
Read-through cache for Setting rows.

Values are stored in Django's cache framework under a generation number.
``invalidate(key)`` drops one key plus the ``all()`` snapshot, and
``invalidate()`` bumps the generation so every cached entry is abandoned at
once. Writers must invalidate after their transaction has committed.
"""
from django.conf import settings
from django.core.cache import caches

_MISSING = object()


class SettingsCache:
    prefix = 'foodcourt:settings'

    def __init__(self, alias='default', timeout=None):
        self.alias = alias
        self.timeout = timeout if timeout is not None else settings.SETTINGS_CACHE_TIMEOUT

    @property
    def backend(self):
        return caches[self.alias]

    def _generation(self):
        version_key = f'{self.prefix}:generation'
        generation = self.backend.get(version_key)
        if generation is None:
            self.backend.add(version_key, 1, None)
            generation = self.backend.get(version_key, 1)
        return generation

    def _key(self, name):
        return f'{self.prefix}:{self._generation()}:{name}'

    def get(self, key):
        """Parsed value of ``key``, or None when no such setting exists."""
        from .models import Setting

        cache_key = self._key(f'key:{key}')
        value = self.backend.get(cache_key, _MISSING)
        if value is _MISSING:
            row = Setting.objects.filter(key=key).first()
            value = row.parsed_value if row is not None else None
            self.backend.set(cache_key, value, self.timeout)
        return value

    def all(self):
        """Mapping of every setting key to its parsed value."""
        from .models import Setting

        cache_key = self._key('all')
        values = self.backend.get(cache_key, _MISSING)
        if values is _MISSING:
            values = {row.key: row.parsed_value for row in Setting.objects.all()}
            self.backend.set(cache_key, values, self.timeout)
        return values

    def invalidate(self, key=None):
        if key is None:
            version_key = f'{self.prefix}:generation'
            try:
                self.backend.incr(version_key)
            except ValueError:
                self.backend.set(version_key, 2, None)
            return
        self.backend.delete_many([self._key(f'key:{key}'), self._key('all')])


settings_cache = SettingsCache()
