"""Evaluate empirical formulas of modifications to monoisotopic masses.

Search engines describe modifications either by mass or by elemental
composition. This module turns the composition notations in use into a
``pyteomics.mass.Composition`` and evaluates it against the NIST element and
isotope masses shipped with pyteomics.

Supported Notations
-------------------
- Compact formulas, optionally with signed counts: ``C2H3N1O1``, ``H-2O-1``,
  ``C2H3N-2OS3N+3S-2``
- Parenthesised counts (UniMod / MaxQuant): ``C(2) H(2) O``, ``H(-1) N(-1) Ox``
- Isotope prefixes: ``13C(6)``, ``15N``, ``^13.003355C``, and deuterium ``D``
- MaxQuant heavy-isotope shorthand: ``Cx``, ``Nx``, ``Ox``, ``Hx``

Isotopes are stored with the pyteomics ``C[13]`` notation. Isotopes given by
an explicit mass (``^13.003355C``) have no pyteomics key and are carried next
to the composition.

Negative counts are evaluated separately from the rest of the formula: their
absolute-value sub-formula gives a mass to subtract, and a formula made only
of negative counts is a pure loss.

Examples
--------
>>> evaluator = ChemicalFormulaEvaluator()
>>> round(evaluator.compute_mass("C2H3N4OS"), 4)
131.0027
>>> round(evaluator.compute_mass("H(-3) N(-1)"), 4)
-17.0265
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Optional

from pyteomics import mass
from pyteomics.auxiliary import PyteomicsError

from .constants import AA_MONO_MASSES, HEAVY_ISOTOPE_SHORTHAND

logger = logging.getLogger(__name__)


class FormulaParseError(ValueError):
    """Raised when a chemical formula cannot be evaluated.

    Parameters
    ----------
    message : str
        Description of the problem
    formula : str
        The formula being evaluated
    title : str
        Name of the modification the formula belongs to (for diagnostics)
    """

    def __init__(self, message: str, formula: str = "", title: str = ""):
        self.formula = formula
        self.title = title
        if title:
            message = f"{message} (modification '{title}', formula '{formula}')"
        elif formula:
            message = f"{message} (formula '{formula}')"
        super().__init__(message)


# One element token: optional isotope prefix, symbol, optional signed count
_TOKEN_PATTERN = re.compile(
    r"(?:\^(?P<isotope_mass>\d+(?:\.\d+)?)|(?P<nominal>\d+)(?=[A-Z]))?"
    r"(?P<symbol>[A-Z][a-z]?)"
    r"(?:\((?P<paren_count>[+-]?\d+)\)|(?P<count>[+-]?\d*))"
)

_EXPLICIT_ISOTOPE_KEY = re.compile(r"\^(\d+(?:\.\d+)?)[A-Z][a-z]?$")


def is_known_element(symbol: str) -> bool:
    """True if pyteomics has a monoisotopic mass for the element symbol."""
    return symbol in mass.nist_mass and 0 in mass.nist_mass[symbol]


# =============================================================================
# Element Composition
# =============================================================================

def element_mass(element: str) -> float:
    """Monoisotopic mass of an element or isotope key.

    Keys are plain element symbols (``"C"``), pyteomics isotopes
    (``"C[13]"``) or explicit isotope masses (``"^13.003355C"``).
    """
    explicit = _EXPLICIT_ISOTOPE_KEY.match(element)
    if explicit:
        return float(explicit.group(1))
    try:
        return mass.Composition({element: 1}).mass()
    except (KeyError, AttributeError, PyteomicsError) as error:
        raise FormulaParseError(f"Unknown element symbol '{element}'") from error


class EmpiricalFormula:
    """Signed element counts on top of a pyteomics Composition.

    Parameters
    ----------
    element_counts : dict, optional
        Counts keyed by element symbol, pyteomics isotope (``"C[13]"``) or
        explicit isotope mass (``"^13.003355C"``)
    """

    def __init__(self, element_counts: Optional[Dict[str, int]] = None):
        self.composition = mass.Composition({})
        self.explicit_isotopes: Dict[str, int] = {}
        for element, count in (element_counts or {}).items():
            self.add_element(element, count)

    @property
    def element_counts(self) -> Dict[str, int]:
        counts = {element: count for element, count in self.composition.items() if count}
        counts.update((key, count) for key, count in self.explicit_isotopes.items() if count)
        return counts

    def add_element(self, element: str, count: int = 1) -> None:
        if _EXPLICIT_ISOTOPE_KEY.match(element):
            self.explicit_isotopes[element] = self.explicit_isotopes.get(element, 0) + count
        else:
            self.composition[element] += count

    def add_elements(self, other: "EmpiricalFormula") -> None:
        for element, count in other.element_counts.items():
            self.add_element(element, count)

    def get_element_count(self, element: str) -> int:
        return self.element_counts.get(element, 0)

    def negative_part(self) -> "EmpiricalFormula":
        """Absolute values of the negative counts."""
        return EmpiricalFormula(
            {element: -count for element, count in self.element_counts.items() if count < 0}
        )

    def positive_part(self) -> "EmpiricalFormula":
        return EmpiricalFormula(
            {element: count for element, count in self.element_counts.items() if count > 0}
        )

    def is_empty(self) -> bool:
        return not self.element_counts

    @property
    def monoisotopic_mass(self) -> float:
        try:
            total = self.composition.mass()
        except (KeyError, PyteomicsError) as error:
            raise FormulaParseError(f"Unknown element in {self}") from error
        return total + sum(element_mass(key) * count for key, count in self.explicit_isotopes.items())

    def __eq__(self, other) -> bool:
        if not isinstance(other, EmpiricalFormula):
            return NotImplemented
        return self.element_counts == other.element_counts

    def __repr__(self) -> str:
        return f"EmpiricalFormula({self})"

    def __str__(self) -> str:
        return "".join(
            element if count == 1 else f"{element}{count}"
            for element, count in self.element_counts.items()
        )


def _token_to_element(match: re.Match, formula: str, title: str) -> str:
    symbol = match.group("symbol")

    if symbol in HEAVY_ISOTOPE_SHORTHAND:
        return HEAVY_ISOTOPE_SHORTHAND[symbol]

    if not is_known_element(symbol):
        raise FormulaParseError(f"Unknown element symbol '{symbol}'", formula, title)

    if match.group("isotope_mass"):
        return f"^{match.group('isotope_mass')}{symbol}"

    if match.group("nominal"):
        nominal = int(match.group("nominal"))
        if nominal not in mass.nist_mass[symbol]:
            raise FormulaParseError(f"Unknown isotope '{nominal}{symbol}'", formula, title)
        return f"{symbol}[{nominal}]"

    return symbol


def _token_count(match: re.Match, formula: str, title: str) -> int:
    count_text = match.group("paren_count")
    if count_text is None:
        count_text = match.group("count")

    if not count_text:
        return 1
    if count_text in ("+", "-"):
        raise FormulaParseError(f"Number not found after '{count_text}'", formula, title)
    return int(count_text)


def parse_formula(formula: str, title: str = "") -> EmpiricalFormula:
    """Parse an empirical formula into element counts.

    Parameters
    ----------
    formula : str
        Formula in any of the supported notations
    title : str
        Modification name, only used in error messages

    Returns
    -------
    EmpiricalFormula
        Element counts; counts of repeated elements are summed

    Raises
    ------
    FormulaParseError
        If the formula is empty or contains an unrecognized token
    """
    if formula is None or not formula.strip():
        raise FormulaParseError("Empty formula", formula or "", title)

    composition = EmpiricalFormula()

    # Whitespace separates tokens in UniMod notation, e.g. "N 15N(2)"
    for chunk in formula.split():
        position = 0
        while position < len(chunk):
            match = _TOKEN_PATTERN.match(chunk, position)
            if match is None or match.end() == position:
                raise FormulaParseError(
                    f"Unrecognized token '{chunk[position:]}'", formula, title
                )
            composition.add_element(
                _token_to_element(match, formula, title),
                _token_count(match, formula, title),
            )
            position = match.end()

    return composition


# =============================================================================
# Mass Evaluation
# =============================================================================

class ChemicalFormulaEvaluator:
    """Compute monoisotopic masses of modification formulas.

    Examples
    --------
    >>> evaluator = ChemicalFormulaEvaluator()
    >>> round(evaluator.compute_mass("Cx(5) Nx C(-5) N(-1)"), 4)
    6.0138
    >>> evaluator.try_compute_mass("Qq") is None
    True
    """

    def compute_mass(self, formula: str, title: str = "") -> float:
        """Monoisotopic mass of a formula, in Da.

        Negative-count elements are collected into a separate formula whose
        mass is subtracted from the mass of the remaining elements.

        Raises
        ------
        FormulaParseError
            For unknown elements, or when either part evaluates to zero
        """
        composition = parse_formula(formula, title)

        to_subtract = composition.negative_part()
        mass_to_subtract = 0.0

        if not to_subtract.is_empty():
            mass_to_subtract = to_subtract.monoisotopic_mass
            if mass_to_subtract == 0:
                raise FormulaParseError(
                    f"Error computing the mass to subtract, {to_subtract}", formula, title
                )

        remainder = composition.positive_part()
        if remainder.is_empty():
            if to_subtract.is_empty():
                raise FormulaParseError("Formula has no elements", formula, title)
            # Pure loss
            return -mass_to_subtract

        remainder_mass = remainder.monoisotopic_mass
        if remainder_mass == 0:
            raise FormulaParseError("Formula mass is zero", formula, title)

        return remainder_mass - mass_to_subtract

    def try_compute_mass(self, formula: str, title: str = "") -> Optional[float]:
        """Like compute_mass, but return None instead of raising."""
        try:
            return self.compute_mass(formula, title)
        except FormulaParseError as error:
            logger.warning(f"Skipping formula: {error}")
            return None

    def compute_sequence_modifier_mass(self, sequence: str, title: str = "") -> float:
        """Mass of a sequence-based modifier such as "GG" or "QQTGG".

        The sum of the residue masses, without the H and OH terminus masses.

        Raises
        ------
        FormulaParseError
            If a character has no residue mass
        """
        modifier_mass = 0.0
        for residue in sequence.strip().upper():
            if residue not in AA_MONO_MASSES:
                raise FormulaParseError(
                    f"Unknown residue '{residue}' in sequence-based modifier", sequence, title
                )
            modifier_mass += AA_MONO_MASSES[residue]
        return modifier_mass


def compute_formula_mass(formula: str, title: str = "") -> float:
    """Module-level shortcut for ChemicalFormulaEvaluator().compute_mass()."""
    return ChemicalFormulaEvaluator().compute_mass(formula, title)
