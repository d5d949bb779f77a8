import logging

from django.core.cache import cache

from .exceptions import SupersededRequestError

logger = logging.getLogger(__name__)

GENERATION_HEADER = 'HTTP_X_REQUEST_GENERATION'


class RequestGeneration:
    """
    Tracks the newest generation token a client has announced for a view.

    A client bumps its token every time it issues a fresh load for the same
    screen. Responses computed for an older token are discarded instead of
    overwriting the result of the newer load.
    """

    timeout = 60 * 60

    def __init__(self, key, token=None):
        self.key = f"request-generation:{key}"
        self.token = token

    @classmethod
    def from_request(cls, request, scope):
        raw = request.META.get(GENERATION_HEADER)
        token = None
        if raw not in (None, ''):
            try:
                token = int(raw)
            except (TypeError, ValueError):
                token = None
        return cls(f"{scope}:{request.user.pk}", token)

    def begin(self):
        if self.token is None:
            return
        latest = cache.get(self.key)
        if latest is None or self.token > latest:
            cache.set(self.key, self.token, self.timeout)

    def is_current(self):
        if self.token is None:
            return True
        latest = cache.get(self.key)
        return latest is None or latest <= self.token

    def ensure_current(self):
        if not self.is_current():
            logger.debug(f"Discarding superseded result for {self.key} (generation {self.token})")
            raise SupersededRequestError()
