class Ed2kException(Exception):
    pass


class Ed2kReadException(Ed2kException, IOError):
    pass


class Ed2kConfigException(Ed2kException):
    pass
