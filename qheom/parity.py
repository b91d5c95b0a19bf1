"""
Parity labels for the operators the HEOM acts on.

Physical density matrices have even parity. Odd-parity auxiliary density
operators appear when a fermionic operator (e.g. a creation or annihilation
operator) has been applied to a physical state, which is needed for
quantities like the density of states or power spectra. The fermionic HEOM
depends on this label.
"""

import enum

__all__ = ["Parity", "EVEN", "ODD"]


class Parity(enum.Enum):
    """ The parity of an operator, ``EVEN`` (0) or ``ODD`` (1). """
    EVEN = 0
    ODD = 1

    def __mul__(self, other):
        if not isinstance(other, Parity):
            return NotImplemented
        return Parity((self.value + other.value) % 2)

    def __int__(self):
        return self.value

    def __repr__(self):
        return self.name

    __str__ = __repr__

    @classmethod
    def coerce(cls, parity):
        """
        Convert ``parity`` to a :class:`Parity`. Accepts members, their
        names ("EVEN", "ODD") or values (0, 1).
        """
        if isinstance(parity, cls):
            return parity
        if isinstance(parity, str):
            try:
                return cls[parity.upper()]
            except KeyError:
                pass
        elif isinstance(parity, (bool, int)) and int(parity) in (0, 1):
            return cls(int(parity))
        raise ValueError(
            f"Invalid parity {parity!r}, expected EVEN or ODD."
        )


EVEN = Parity.EVEN
ODD = Parity.ODD
