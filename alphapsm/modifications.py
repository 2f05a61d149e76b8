"""Modification definitions and applied modification instances.

A ModificationDefinition describes one kind of modification for a
processing run (mass, target residues, type, display symbol, name). An
AminoAcidModInfo records one occurrence of a definition on a peptide.

Target Residues
---------------
Target residues are one-letter codes plus the terminus symbols:

- ``<`` peptide N-terminus, ``>`` peptide C-terminus
- ``[`` protein N-terminus, ``]`` protein C-terminus

An empty target residue string means the modification can occur anywhere.

Examples
--------
>>> oxidation = ModificationDefinition('*', 15.994915, "M", ModificationType.DYNAMIC, "Plus1Oxy")
>>> oxidation.target_residues_contain('M')
True
>>> ModificationType.from_symbol('S')
<ModificationType.STATIC: 2>
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from .constants import (
    C_TERMINAL_PEPTIDE_SYMBOL,
    C_TERMINAL_PROTEIN_SYMBOL,
    INITIAL_UNKNOWN_MASS_CORRECTION_TAG_NAME,
    MASS_DIGITS_OF_PRECISION,
    N_TERMINAL_PEPTIDE_SYMBOL,
    N_TERMINAL_PROTEIN_SYMBOL,
    NO_AFFECTED_ATOM_SYMBOL,
    NO_SYMBOL_MODIFICATION_SYMBOL,
    TERMINUS_TARGET_SYMBOLS,
)


class ModificationType(Enum):
    """Kind of modification, with the single-letter code used in files."""
    UNKNOWN = 0
    DYNAMIC = 1
    STATIC = 2
    TERMINAL_PEPTIDE_STATIC = 3
    ISOTOPIC = 4
    PROTEIN_TERMINUS_STATIC = 5

    @property
    def symbol(self) -> str:
        return _TYPE_TO_SYMBOL.get(self, '?')

    @classmethod
    def from_symbol(cls, symbol: str) -> 'ModificationType':
        """Type for a D/S/T/I/P code; anything else is UNKNOWN."""
        return _SYMBOL_TO_TYPE.get((symbol or "").upper(), cls.UNKNOWN)


_TYPE_TO_SYMBOL = {
    ModificationType.DYNAMIC: 'D',
    ModificationType.STATIC: 'S',
    ModificationType.TERMINAL_PEPTIDE_STATIC: 'T',
    ModificationType.ISOTOPIC: 'I',
    ModificationType.PROTEIN_TERMINUS_STATIC: 'P',
}
_SYMBOL_TO_TYPE = {symbol: mod_type for mod_type, symbol in _TYPE_TO_SYMBOL.items()}


class ResidueTerminusState(Enum):
    """Terminus context of one modified residue."""
    NONE = 0
    PEPTIDE_N_TERMINUS = 1
    PEPTIDE_C_TERMINUS = 2
    PROTEIN_N_TERMINUS = 3
    PROTEIN_C_TERMINUS = 4
    PROTEIN_N_AND_C_TERMINUS = 5

    @property
    def is_n_terminal(self) -> bool:
        return self in (
            ResidueTerminusState.PEPTIDE_N_TERMINUS,
            ResidueTerminusState.PROTEIN_N_TERMINUS,
            ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS,
        )

    @property
    def is_c_terminal(self) -> bool:
        return self in (
            ResidueTerminusState.PEPTIDE_C_TERMINUS,
            ResidueTerminusState.PROTEIN_C_TERMINUS,
            ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS,
        )

    @property
    def terminus_target_symbol(self) -> Optional[str]:
        """'<' for N-terminal states, '>' for C-terminal states, else None."""
        if self in (ResidueTerminusState.PROTEIN_N_TERMINUS,
                    ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS,
                    ResidueTerminusState.PEPTIDE_N_TERMINUS):
            return N_TERMINAL_PEPTIDE_SYMBOL
        if self in (ResidueTerminusState.PROTEIN_C_TERMINUS,
                    ResidueTerminusState.PEPTIDE_C_TERMINUS):
            return C_TERMINAL_PEPTIDE_SYMBOL
        return None


def terminus_target_symbols(terminus_state: ResidueTerminusState) -> Tuple[str, ...]:
    """Target residue symbols that match a residue in the given terminus context.

    A residue at the protein N-terminus is also at the peptide N-terminus,
    so it matches both '[' and '<' (likewise ']' and '>' at the C-terminus).
    """
    symbols = ()
    if terminus_state in (ResidueTerminusState.PROTEIN_N_TERMINUS,
                          ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS):
        symbols += (N_TERMINAL_PROTEIN_SYMBOL, N_TERMINAL_PEPTIDE_SYMBOL)
    elif terminus_state == ResidueTerminusState.PEPTIDE_N_TERMINUS:
        symbols += (N_TERMINAL_PEPTIDE_SYMBOL,)

    if terminus_state in (ResidueTerminusState.PROTEIN_C_TERMINUS,
                          ResidueTerminusState.PROTEIN_N_AND_C_TERMINUS):
        symbols += (C_TERMINAL_PROTEIN_SYMBOL, C_TERMINAL_PEPTIDE_SYMBOL)
    elif terminus_state == ResidueTerminusState.PEPTIDE_C_TERMINUS:
        symbols += (C_TERMINAL_PEPTIDE_SYMBOL,)

    return symbols


def masses_equivalent(mass_a: float, mass_b: float,
                      digits_of_precision: int = MASS_DIGITS_OF_PRECISION) -> bool:
    """True if two masses round to the same difference of zero."""
    return round(mass_a - mass_b, digits_of_precision) == 0


def equivalent_target_residues(residues1: Optional[str], residues2: Optional[str],
                               allow_residues2_to_be_subset: bool) -> bool:
    """Compare two target residue lists.

    Lists with the same residues in any order are equivalent. With
    allow_residues2_to_be_subset, residues2 only needs to share its
    leading residues with residues1.
    """
    if residues1 is None and residues2 is None:
        return True
    if residues1 is None or residues2 is None:
        return False
    if residues1 == residues2:
        return True
    if len(residues1) < len(residues2):
        return False

    match_count = 0
    for residue in residues2:
        if residue not in residues1:
            break
        match_count += 1

    if match_count == len(residues1):
        return True
    return allow_residues2_to_be_subset and match_count > 0


# =============================================================================
# Modification Definition
# =============================================================================

@dataclass(eq=False)
class ModificationDefinition:
    """One kind of modification known to a processing run.

    Instances are shared by reference: every applied occurrence of a
    modification points at the same definition, so ``occurrence_count``
    aggregates over a whole run. Equality is identity.

    Parameters
    ----------
    modification_symbol : str
        Display character inserted after modified residues ('-' for none)
    modification_mass : float
        Monoisotopic mass shift (per atom for isotopic mods)
    target_residues : str
        Residues and terminus symbols the mod can occur on ('' for any)
    modification_type : ModificationType
        Dynamic, static, terminal static, isotopic or unknown
    mass_correction_tag : str
        Canonical short name, e.g. "Plus1Oxy"
    affected_atom : str
        Labelled element of an isotopic mod ('-' for none)
    unknown_mod_auto_defined : bool
        True for mods registered automatically from an unrecognised mass
    """

    modification_symbol: str = NO_SYMBOL_MODIFICATION_SYMBOL
    modification_mass: float = 0.0
    target_residues: str = ""
    modification_type: ModificationType = ModificationType.UNKNOWN
    mass_correction_tag: str = INITIAL_UNKNOWN_MASS_CORRECTION_TAG_NAME
    affected_atom: str = NO_AFFECTED_ATOM_SYMBOL
    unknown_mod_auto_defined: bool = False
    occurrence_count: int = 0
    modification_mass_as_text: str = field(default="", repr=False)

    def __post_init__(self):
        if not self.modification_symbol:
            self.modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL
        if not self.affected_atom:
            self.affected_atom = NO_AFFECTED_ATOM_SYMBOL
        if self.target_residues is None:
            self.target_residues = ""
        if self.mass_correction_tag is None:
            self.mass_correction_tag = ""
        if not self.modification_mass_as_text:
            self.modification_mass_as_text = repr(float(self.modification_mass))

    # -------------------------------------------------------------------------
    # Equivalence
    # -------------------------------------------------------------------------

    def equivalent_mass_type_tag_and_atom(self, other: 'ModificationDefinition') -> bool:
        """Same mass (to 3 decimals), type, tag and affected atom."""
        return (masses_equivalent(self.modification_mass, other.modification_mass) and
                self.modification_type == other.modification_type and
                self.mass_correction_tag == other.mass_correction_tag and
                self.affected_atom == other.affected_atom)

    def equivalent_mass_type_tag_atom_and_residues(self, other: 'ModificationDefinition') -> bool:
        """As equivalent_mass_type_tag_and_atom, and also the same target residues.

        Dynamic and static mods compare residues ignoring order; other
        types need identical residue strings.
        """
        if not self.equivalent_mass_type_tag_and_atom(other):
            return False
        if self.modification_type in (ModificationType.DYNAMIC, ModificationType.STATIC):
            return equivalent_target_residues(self.target_residues, other.target_residues, False)
        return self.target_residues == other.target_residues

    # -------------------------------------------------------------------------
    # Target residues
    # -------------------------------------------------------------------------

    def target_residues_contain(self, residue: str) -> bool:
        if not residue:
            return False
        return residue in self.target_residues

    def can_affect_peptide_or_protein_terminus(self) -> bool:
        if self.modification_type in (ModificationType.PROTEIN_TERMINUS_STATIC,
                                      ModificationType.TERMINAL_PEPTIDE_STATIC):
            return True
        return any(residue in TERMINUS_TARGET_SYMBOLS for residue in self.target_residues)

    def can_affect_peptide_residues(self) -> bool:
        if self.modification_type in (ModificationType.PROTEIN_TERMINUS_STATIC,
                                      ModificationType.TERMINAL_PEPTIDE_STATIC):
            return False
        if not self.target_residues:
            return True
        return any(residue not in TERMINUS_TARGET_SYMBOLS for residue in self.target_residues)

    def targets_residue_or_terminus(self, residue: str, terminus_state: ResidueTerminusState) -> bool:
        """True if the residue, or a terminus symbol valid for terminus_state, is a target."""
        if self.target_residues_contain(residue):
            return True
        return any(self.target_residues_contain(symbol)
                   for symbol in terminus_target_symbols(terminus_state))

    def applies_to(self, residue: str, terminus_state: ResidueTerminusState) -> bool:
        """Whether this mod can sit on a residue in the given terminus context.

        Empty target residues match anything.
        """
        if not self.target_residues:
            return True
        return self.targets_residue_or_terminus(residue, terminus_state)

    def __str__(self) -> str:
        return (f"{self.modification_symbol} {self.modification_mass:.4f} "
                f"{self.target_residues or '*'} {self.modification_type.symbol} {self.mass_correction_tag}")


# =============================================================================
# Applied Modification
# =============================================================================

@dataclass(frozen=True)
class AminoAcidModInfo:
    """One modification applied to one residue of a peptide.

    ``residue_loc_in_peptide`` is 1-based; 0 is used for isotopic mods that
    affect the whole peptide. For ambiguous placements (e.g. MSAlign's
    ``(ST)[80]``) ``end_residue_loc_in_peptide`` is the last possible
    position.
    """

    residue: str
    residue_loc_in_peptide: int
    residue_terminus_state: ResidueTerminusState
    mod_definition: ModificationDefinition
    end_residue_loc_in_peptide: Optional[int] = None

    def __post_init__(self):
        if self.end_residue_loc_in_peptide is None:
            object.__setattr__(self, "end_residue_loc_in_peptide", self.residue_loc_in_peptide)

    @property
    def ambiguous_mod(self) -> bool:
        return self.end_residue_loc_in_peptide > self.residue_loc_in_peptide

    def __str__(self) -> str:
        return f"{self.residue}: {self.mod_definition.modification_mass:.4f} Da ({self.mod_definition.mass_correction_tag})"
