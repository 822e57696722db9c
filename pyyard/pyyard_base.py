import abc
import logging
import threading
from typing import Optional, Any, Union

import requests

from pyyard.exceptions import PyYardAuthError, PyYardHTTPError, PyYardTransportError

log = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10  # Seconds to wait for any upstream response


def lookup(data, keylist):
    """
    Lookup a value in a nested dictionary or return None if not found.
        data - nested dictionary
        keylist - list of keys to traverse
    """
    for key in keylist:
        if isinstance(data, dict) and key in data:
            data = data[key]
        else:
            return None
    return data


class PyYardBase:
    """
    Shared plumbing for the upstream clients: a pooled requests session per
    client and thread, a timeout on every call and a single place where
    transport and HTTP failures are mapped onto the pyyard exception types.
    """

    def __init__(self, timeout: int = DEFAULT_TIMEOUT, poolmaxsize: int = 10):
        super().__init__()
        self.timeout = timeout
        self.poolmaxsize = poolmaxsize
        self.token = None  # caches bearer token
        self._local = threading.local()
        self._sessions = []  # every session handed out, closed together
        self._sessions_lock = threading.Lock()

    @abc.abstractmethod
    def authenticate(self) -> dict:
        raise NotImplementedError

    @property
    def session(self):
        """
        HTTP session of the calling thread. requests.Session is not
        thread-safe, so detail fetches running on a worker pool each get their
        own pooled session.
        """
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session = self._new_session()
        return session

    @session.setter
    def session(self, session):
        self._local.session = session
        if session is not requests:
            with self._sessions_lock:
                self._sessions.append(session)

    def _new_session(self):
        if self.poolmaxsize <= 0:
            # Disable http persistent connections
            return requests
        # Create session object for http connection re-use
        session = requests.Session()
        # noinspection PyUnresolvedReferences
        a = requests.adapters.HTTPAdapter(pool_maxsize=self.poolmaxsize)
        session.mount('https://', a)
        return session

    def close_session(self):
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()
        self._local = threading.local()
        self.token = None

    def headers(self) -> dict:
        return {}

    def request(self, method: str, url: str, auth: bool = False,
                **kwargs) -> Optional[Union[dict, list]]:
        """
        Send a request and return the decoded JSON body.

        Args:
            method = HTTP verb
            url    = Absolute URL
            auth   = If True, a non-2xx status is an authentication failure
        """
        headers = self.headers()
        headers.update(kwargs.pop('headers', None) or {})
        log.debug(f"{method}: {url}")
        try:
            r = self.session.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.exceptions.Timeout as exc:
            raise PyYardTransportError(f"Timeout after {self.timeout}s calling {url}") from exc
        except requests.exceptions.RequestException as exc:
            raise PyYardTransportError(f"Unable to reach {url}: {exc}") from exc
        if not r.ok:
            if auth:
                raise PyYardAuthError(f"{r.status_code} ({r.reason}) requesting token from {url}")
            raise PyYardHTTPError(r.status_code, url, r.reason)
        try:
            return r.json()
        except ValueError as exc:
            raise PyYardHTTPError(r.status_code, url, f"invalid JSON: {exc}") from exc

    def get(self, url: str, **kwargs) -> Any:
        return self.request('GET', url, **kwargs)

    def post(self, url: str, **kwargs) -> Any:
        return self.request('POST', url, **kwargs)
