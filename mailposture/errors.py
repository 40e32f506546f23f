"""Error taxonomy shared by the record analyzers."""


class MailPostureError(Exception):
    """Base class for every error raised inside mailposture"""


class RecordNotFound(MailPostureError):
    """No matching record is published at the queried name"""


class RecordParseError(MailPostureError):
    """A record was found but could not be interpreted"""


class ResolutionError(MailPostureError):
    """Every configured nameserver failed to answer"""


class VerifierError(MailPostureError):
    """The authentication verifier failed"""
