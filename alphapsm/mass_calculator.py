"""Theoretical peptide masses, charge state conversion and ppm arithmetic.

Peptide sequences are encoded as ord() arrays and summed by a Numba kernel
over an ord()-indexed residue mass table, the same encoding used by the
fragment generator of the search engine side of the code base.

Examples
--------
>>> calculator = PeptideMassCalculator()
>>> round(calculator.compute_sequence_mass("A.LCDE.F"), 5)
478.17333
>>> round(calculator.convolute_mass(1000, 1, 0), 5)
998.99272
>>> mass_to_ppm(0.005, 1000)
5.0
"""

import logging
import re
from typing import Iterable, NamedTuple, Optional

import numpy as np
from numba import njit

from .cleavage import split_prefix_and_suffix
from .constants import (
    AA_COMPOSITIONS,
    AA_MASSES,
    AA_MONO_MASSES,
    DEFAULT_C_TERMINUS_MASS,
    DEFAULT_N_TERMINUS_MASS,
    NO_AFFECTED_ATOM_SYMBOL,
    PROTON_MASS,
)
from .formula import EmpiricalFormula, FormulaParseError, is_known_element

logger = logging.getLogger(__name__)


class InvalidResidueError(ValueError):
    """Raised when a sequence contains a character without a residue mass."""

    def __init__(self, residue: str, sequence: str):
        self.residue = residue
        self.sequence = sequence
        super().__init__(f"Unknown symbol {residue} in sequence {sequence}")


class PeptideSequenceModInfo(NamedTuple):
    """A modification as seen by the mass calculator.

    ``affected_atom`` is '-' for positional (static or dynamic) mods. For
    isotopic mods it names the labelled element and ``modification_mass``
    is the shift per atom of that element.
    """
    residue_loc_in_peptide: int
    modification_mass: float
    affected_atom: str = NO_AFFECTED_ATOM_SYMBOL


# =============================================================================
# Encoding and Numba Kernels
# =============================================================================

def encode_peptide_to_ord(peptide: str) -> np.ndarray:
    """Convert a peptide string to a uint8 array of ord() values.

    Raises
    ------
    InvalidResidueError
        If a character is outside the 8-bit range
    """
    for char in peptide:
        if ord(char) > 255:
            raise InvalidResidueError(char, peptide)
    return np.array([ord(c) for c in peptide], dtype=np.uint8)


@njit(cache=True)
def sum_residue_masses(peptide_ord: np.ndarray, residue_masses: np.ndarray):
    """Sum residue masses of an ord()-encoded peptide (Numba-compiled).

    Returns
    -------
    mass : float
        Sum of residue masses (0 when a residue is invalid)
    invalid_index : int
        Index of the first residue without a mass, or -1
    """
    mass = 0.0
    for i in range(len(peptide_ord)):
        residue_mass = residue_masses[peptide_ord[i]]
        if np.isnan(residue_mass):
            return 0.0, i
        mass += residue_mass
    return mass, -1


@njit(cache=True)
def mass_to_ppm_batch(mass_deltas: np.ndarray, reference_masses: np.ndarray) -> np.ndarray:
    """Vectorised mass_to_ppm (Numba-compiled)."""
    result = np.empty(len(mass_deltas), dtype=np.float64)
    for i in range(len(mass_deltas)):
        result[i] = mass_deltas[i] * 1e6 / reference_masses[i]
    return result


# =============================================================================
# Unit Conversion
# =============================================================================

def mass_to_ppm(mass_to_convert: float, current_mz: float) -> float:
    """Convert a mass difference to ppm of a reference mass."""
    return mass_to_convert * 1e6 / current_mz


def ppm_to_mass(ppm_to_convert: float, current_mass: float) -> float:
    """Convert ppm of a reference mass back to a mass difference."""
    return ppm_to_convert / 1e6 * current_mass


def convolute_mass(mass_mz: float, current_charge: int, desired_charge: int = 1,
                   charge_carrier_mass: float = PROTON_MASS) -> float:
    """Convert an m/z value from one charge state to another.

    A charge of 0 means the neutral monoisotopic mass. A charge carrier mass
    of 0 means the proton. Negative charges are not supported and give 0.

    Parameters
    ----------
    mass_mz : float
        m/z at current_charge (or neutral mass if current_charge is 0)
    current_charge : int
        Charge of mass_mz
    desired_charge : int
        Charge to convert to
    charge_carrier_mass : float
        Mass of the charge carrier (default: proton)

    Returns
    -------
    float
        m/z at desired_charge

    Examples
    --------
    >>> round(convolute_mass(500.0, 2, 1), 6)
    998.992724
    """
    if abs(charge_carrier_mass) < 1e-30:
        charge_carrier_mass = PROTON_MASS

    if current_charge == desired_charge:
        return mass_mz

    # To M+H
    if current_charge == 1:
        new_mz = mass_mz
    elif current_charge > 1:
        new_mz = mass_mz * current_charge - charge_carrier_mass * (current_charge - 1)
    elif current_charge == 0:
        new_mz = mass_mz + charge_carrier_mass
    else:
        return 0.0

    # From M+H
    if desired_charge > 1:
        return (new_mz + charge_carrier_mass * (desired_charge - 1)) / desired_charge
    if desired_charge == 1:
        return new_mz
    if desired_charge == 0:
        return new_mz - charge_carrier_mass
    return 0.0


# =============================================================================
# Peptide Mass Calculator
# =============================================================================

_NUMERIC_MOD_MASS = re.compile(r"[+-][0-9.]+")


class PeptideMassCalculator:
    """Monoisotopic masses of peptides with positioned modifications.

    Residue masses and the terminus masses can be customised per instance,
    e.g. when a search engine redefines a residue or the peptide termini.

    Parameters
    ----------
    charge_carrier_mass : float
        Mass used by convolute_mass (default: proton)
    remove_prefix_and_suffix_if_present : bool
        Strip ``X.`` and ``.Y`` flanking residues before computing masses
    """

    def __init__(self, charge_carrier_mass: float = PROTON_MASS,
                 remove_prefix_and_suffix_if_present: bool = True):
        self.charge_carrier_mass = charge_carrier_mass
        self.remove_prefix_and_suffix_if_present = remove_prefix_and_suffix_if_present
        self.residue_masses = AA_MASSES.copy()
        self.peptide_n_terminus_mass = DEFAULT_N_TERMINUS_MASS
        self.peptide_c_terminus_mass = DEFAULT_C_TERMINUS_MASS
        self._residue_formulas = {}
        self.reset_amino_acid_masses()

    # -------------------------------------------------------------------------
    # Residue tables
    # -------------------------------------------------------------------------

    @staticmethod
    def _is_residue_code(residue: str) -> bool:
        return len(residue) == 1 and 'A' <= residue <= 'Z'

    def get_amino_acid_mass(self, residue: str) -> float:
        """Residue mass, or 0 for a character that is not a residue code."""
        if not self._is_residue_code(residue):
            return 0.0
        return float(self.residue_masses[ord(residue)])

    def get_amino_acid_empirical_formula(self, residue: str) -> EmpiricalFormula:
        return EmpiricalFormula(self._residue_formulas.get(residue, {}))

    def set_amino_acid_mass(self, residue: str, mass: float) -> bool:
        """Override a residue mass; False if residue is not a letter A-Z."""
        if not self._is_residue_code(residue):
            return False
        self.residue_masses[ord(residue)] = mass
        return True

    def set_amino_acid_atom_counts(self, residue: str, formula: EmpiricalFormula) -> bool:
        """Override a residue's element counts (used for isotopic mods)."""
        if not self._is_residue_code(residue):
            return False
        self._residue_formulas[residue] = dict(formula.element_counts)
        return True

    def reset_amino_acid_to_default(self, residue: str) -> None:
        if not self._is_residue_code(residue):
            return
        self.residue_masses[ord(residue)] = AA_MONO_MASSES[residue]
        self._residue_formulas[residue] = dict(AA_COMPOSITIONS[residue])

    def reset_amino_acid_masses(self) -> None:
        for residue in AA_MONO_MASSES:
            self.reset_amino_acid_to_default(residue)

    def reset_terminus_masses(self) -> None:
        """Restore H on the N-terminus and OH on the C-terminus."""
        self.peptide_n_terminus_mass = DEFAULT_N_TERMINUS_MASS
        self.peptide_c_terminus_mass = DEFAULT_C_TERMINUS_MASS

    # -------------------------------------------------------------------------
    # Sequence masses
    # -------------------------------------------------------------------------

    def _primary_sequence(self, sequence: str) -> str:
        if self.remove_prefix_and_suffix_if_present:
            primary_sequence = split_prefix_and_suffix(sequence).primary_sequence
            if primary_sequence and primary_sequence.strip():
                return primary_sequence
        return sequence

    def sequence_empirical_formula(self, sequence: str) -> EmpiricalFormula:
        """Summed element counts of the residues (termini not included).

        Raises
        ------
        InvalidResidueError
            If a character is not a residue code
        """
        formula = EmpiricalFormula()
        for residue in sequence:
            if not self._is_residue_code(residue):
                raise InvalidResidueError(residue, sequence)
            for element, count in self._residue_formulas[residue].items():
                formula.add_element(element, count)
        return formula

    def compute_sequence_mass(self, sequence: str,
                              modified_residues: Optional[Iterable[PeptideSequenceModInfo]] = None) -> float:
        """Monoisotopic mass of a peptide plus its modifications.

        Parameters
        ----------
        sequence : str
            One-letter residue codes without modification symbols; may carry
            flanking residues ("K.PEPTIDE.G")
        modified_residues : iterable of PeptideSequenceModInfo, optional
            Modifications to add. Positional mods add their mass once;
            isotopic mods add their mass once per atom of the affected
            element in the sequence.

        Returns
        -------
        float
            Monoisotopic (neutral) mass in Da; 0 for an empty sequence

        Raises
        ------
        InvalidResidueError
            If the sequence contains a character without a residue mass
        FormulaParseError
            If an isotopic mod names an element without a known mass
        """
        primary_sequence = self._primary_sequence(sequence)

        peptide_ord = encode_peptide_to_ord(primary_sequence)
        mass, invalid_index = sum_residue_masses(peptide_ord, self.residue_masses)
        if invalid_index >= 0:
            raise InvalidResidueError(primary_sequence[invalid_index], primary_sequence)

        if len(primary_sequence) > 0:
            mass += self.peptide_n_terminus_mass + self.peptide_c_terminus_mass

        if not modified_residues:
            return mass

        sequence_formula = None
        for mod in modified_residues:
            if not mod.affected_atom or mod.affected_atom == NO_AFFECTED_ATOM_SYMBOL:
                mass += mod.modification_mass
                continue

            # Isotopic modification
            if not is_known_element(mod.affected_atom):
                raise FormulaParseError(f"Unknown affected atom '{mod.affected_atom}' in {primary_sequence}")

            if sequence_formula is None:
                sequence_formula = self.sequence_empirical_formula(primary_sequence)

            element_count = sequence_formula.get_element_count(mod.affected_atom)
            if element_count == 0:
                logger.warning(f"No residues in {primary_sequence} contain element {mod.affected_atom}")
            else:
                mass += element_count * mod.modification_mass

        return mass

    def compute_sequence_mass_numeric_mods(self, sequence: str) -> float:
        """Mass of a peptide whose modifications are written as numbers.

        >>> calculator = PeptideMassCalculator()
        >>> round(calculator.compute_sequence_mass_numeric_mods("K.Q-17.0265QIEESTSDYDKEK.L"), 4)
        1681.7319
        """
        primary_sequence = self._primary_sequence(sequence)

        mod_mass_total = 0.0
        for match in _NUMERIC_MOD_MASS.finditer(primary_sequence):
            try:
                mod_mass_total += float(match.group())
            except ValueError:
                logger.debug(f"Ignoring non-numeric mod mass {match.group()} in {sequence}")

        sequence_without_mods = _NUMERIC_MOD_MASS.sub("", primary_sequence)
        return self.compute_sequence_mass(sequence_without_mods) + mod_mass_total

    # -------------------------------------------------------------------------
    # Charge conversion
    # -------------------------------------------------------------------------

    def convolute_mass(self, mass_mz: float, current_charge: int, desired_charge: int = 1,
                       charge_carrier_mass: Optional[float] = None) -> float:
        """convolute_mass() using this calculator's charge carrier by default."""
        if charge_carrier_mass is None:
            charge_carrier_mass = self.charge_carrier_mass
        return convolute_mass(mass_mz, current_charge, desired_charge, charge_carrier_mass)

    def mh_to_monoisotopic_mass(self, mh: float) -> float:
        """(M+H)+ to neutral mass."""
        return self.convolute_mass(mh, 1, 0)

    def monoisotopic_mass_to_mz(self, monoisotopic_mass: float, desired_charge: int) -> float:
        return self.convolute_mass(monoisotopic_mass, 0, desired_charge)
