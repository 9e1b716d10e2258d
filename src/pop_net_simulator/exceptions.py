"""
Exception hierarchy for pop-net-simulator.

Calibration errors are raised before any simulation step runs. Runtime errors
(``DistributionUnavailable``, ``MissingSize``, ``MissingAttribute``) are fatal
to the replicate that raised them; the caller decides whether the rest of a
multi-replicate run continues.
"""

from typing import Optional


class NetSimError(Exception):
    """Base class for all simulator errors."""


class CalibrationError(NetSimError, ValueError):
    """A dissolution specification could not be turned into coefficients."""


class InvalidDuration(CalibrationError):
    """A target mean duration is below one time unit."""


class ArityMismatch(CalibrationError):
    """The number of durations does not match the number of strata."""


class InvalidRate(CalibrationError):
    """The departure rate is not a single value in [0, 1)."""


class MalformedSpec(CalibrationError):
    """The dissolution formula is not of the form ``~offset(edges) + ...``."""


class UnsupportedTerm(CalibrationError):
    """The stratifying term is not nodematch, nodemix or nodefactor."""


class Infeasible(CalibrationError):
    """
    Departure is too frequent for the requested duration.

    Attributes
    ----------
    duration : float
        The mean duration that cannot be reached
    max_d_rate : float
        Largest departure rate that would still be feasible, rounded to
        five decimals
    stratum : int, optional
        1-based position of the offending duration in heterogeneous models
    """

    def __init__(self, duration: float, max_d_rate: float,
                 stratum: Optional[int] = None):
        self.duration = duration
        self.max_d_rate = max_d_rate
        self.stratum = stratum
        if stratum is None:
            msg = (f"The competing risk of departure is too high for the "
                   f"given duration of {duration:g}; specify a d_rate lower "
                   f"than {max_d_rate}.")
        else:
            msg = (f"The competing risk of departure is too high for the "
                   f"given edge duration of {duration:g} in place {stratum}. "
                   f"Specify a d_rate lower than {max_d_rate}.")
        super().__init__(msg)


class DistributionUnavailable(NetSimError, LookupError):
    """No attribute distribution to sample entrant values from."""


class MissingSize(NetSimError, ValueError):
    """An edgelist was given without the total number of members."""


class MissingAttribute(NetSimError, KeyError):
    """A field that must be pushed to the network is not in the table."""


class ReservedAttributeError(NetSimError, ValueError):
    """A reserved attribute was registered with the wrong kind or is absent."""
