class PyYardError(Exception):
    pass


class PyYardInvalidConfigurationParameter(PyYardError):
    pass


class PyYardAuthError(PyYardError):
    pass


class PyYardTransportError(PyYardError):
    pass


class PyYardHTTPError(PyYardError):
    def __init__(self, status_code: int, url: str, reason: str = ""):
        self.status_code = status_code
        self.url = url
        self.reason = reason
        super().__init__(f"{status_code} ({reason}) for {url}" if reason else f"{status_code} for {url}")


class PyYardMergeError(PyYardError):
    pass


class PyYardLocationError(PyYardError):
    pass


class PyYardAddressError(PyYardError):
    pass
