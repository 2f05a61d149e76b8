"""Precursor mass tolerance windows.

A parameter file may declare a symmetric tolerance (``20ppm``) or an
asymmetric one (``0.5Da,2.5Da``). Both sides are stored as non-negative
magnitudes: ``tolerance_left`` bounds the more negative side of a mass error
and ``tolerance_right`` the more positive side.
"""

import re
from dataclasses import dataclass

# Reference m/z used when converting between Da and ppm without a peptide mass
DEFAULT_REFERENCE_MASS = 2000.0

_TOLERANCE_PATTERN = re.compile(r"^\s*([+-]?[0-9.]+)\s*([A-Za-z]*)\s*$")


@dataclass
class PrecursorMassTolerance:
    """Mass tolerance around a precursor m/z value.

    Examples
    --------
    >>> str(PrecursorMassTolerance.from_text("20ppm"))
    '+/-20 ppm'
    >>> str(PrecursorMassTolerance.from_text("0.5Da,2.5Da"))
    '-0.5, +2.5 Da'
    """

    tolerance_left: float = 0.0
    tolerance_right: float = 0.0
    is_ppm: bool = False

    def __post_init__(self):
        self.tolerance_left = abs(self.tolerance_left)
        self.tolerance_right = abs(self.tolerance_right)

    @classmethod
    def symmetric(cls, tolerance: float, is_ppm: bool) -> 'PrecursorMassTolerance':
        return cls(tolerance, tolerance, is_ppm)

    @classmethod
    def from_text(cls, text: str) -> 'PrecursorMassTolerance':
        """Parse a tolerance such as "20ppm", "10 ppm", "0.5Da,2.5Da" or "3".

        Values without units are taken as Da.

        Raises
        ------
        ValueError
            If a value is not numeric, the units are unknown, or the two
            sides use different units
        """
        values = []
        units = []
        for item in text.split(','):
            if not item.strip():
                continue
            match = _TOLERANCE_PATTERN.match(item)
            if match is None:
                raise ValueError(f"Invalid precursor tolerance: {text}")
            try:
                values.append(float(match.group(1)))
            except ValueError:
                raise ValueError(f"Invalid precursor tolerance: {text}") from None

            unit = match.group(2).lower() or "da"
            if unit not in ("da", "ppm"):
                raise ValueError(f"Unknown tolerance units '{match.group(2)}' in {text}")
            units.append(unit)

        if not values or len(values) > 2:
            raise ValueError(f"Invalid precursor tolerance: {text}")
        if len(set(units)) > 1:
            raise ValueError(f"Mixed tolerance units in {text}")

        is_ppm = units[0] == "ppm"
        if len(values) == 1:
            return cls.symmetric(values[0], is_ppm)
        return cls(values[0], values[1], is_ppm)

    @property
    def is_symmetric(self) -> bool:
        threshold = 0.01 if self.is_ppm else 0.0001
        return abs(self.tolerance_left - self.tolerance_right) < threshold

    @property
    def units(self) -> str:
        return "ppm" if self.is_ppm else "Da"

    def to_da(self, reference_mass: float = DEFAULT_REFERENCE_MASS) -> 'PrecursorMassTolerance':
        """This tolerance expressed in Da at the given reference mass."""
        if not self.is_ppm:
            return PrecursorMassTolerance(self.tolerance_left, self.tolerance_right, False)
        return PrecursorMassTolerance(
            self.tolerance_left / 1e6 * reference_mass,
            self.tolerance_right / 1e6 * reference_mass,
            False,
        )

    def to_ppm(self, reference_mass: float = DEFAULT_REFERENCE_MASS) -> 'PrecursorMassTolerance':
        """This tolerance expressed in ppm at the given reference mass."""
        if self.is_ppm:
            return PrecursorMassTolerance(self.tolerance_left, self.tolerance_right, True)
        return PrecursorMassTolerance(
            self.tolerance_left * 1e6 / reference_mass,
            self.tolerance_right * 1e6 / reference_mass,
            True,
        )

    def contains(self, mass_error: float, reference_mass: float = DEFAULT_REFERENCE_MASS,
                 error_is_ppm: bool = False) -> bool:
        """Whether a mass error (observed - theoretical) falls inside the window.

        Parameters
        ----------
        mass_error : float
            Mass error, in Da unless error_is_ppm is True
        reference_mass : float
            Mass used to convert between Da and ppm
        error_is_ppm : bool
            Units of mass_error
        """
        if error_is_ppm != self.is_ppm:
            if error_is_ppm:
                mass_error = mass_error / 1e6 * reference_mass
            else:
                mass_error = mass_error * 1e6 / reference_mass
        return -self.tolerance_left <= mass_error <= self.tolerance_right

    def __str__(self) -> str:
        if self.is_symmetric:
            return f"+/-{self.tolerance_left:g} {self.units}"
        return f"-{self.tolerance_left:g}, +{self.tolerance_right:g} {self.units}"
