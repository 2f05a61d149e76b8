"""Peptide cleavage state, terminus state and missed cleavages.

Peptides are reported with their flanking residues in the ``X.SEQUENCE.Y``
convention. A flanking residue that is a terminus symbol (``-`` or the
X!Tandem style ``[`` and ``]``) marks the edge of the protein.

Examples
--------
>>> classifier = PeptideCleavageClassifier()
>>> classifier.compute_cleavage_state("K.AEPTIDER.A")
<PeptideCleavageState.FULL: 2>
>>> classifier.compute_terminus_state("-.GLMVPVIR.-")
<PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS: 3>
>>> split_prefix_and_suffix("R.PEPT*IDE.G")
SplitSequence(primary_sequence='PEPT*IDE', prefix='R', suffix='G', has_prefix_and_suffix=True)
"""

import re
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import NamedTuple, Optional, Union

from .constants import (
    TERMINUS_SYMBOL_SEQUEST,
    TERMINUS_SYMBOL_XTANDEM_C_TERMINUS,
    TERMINUS_SYMBOL_XTANDEM_N_TERMINUS,
)

GENERIC_RESIDUE_SYMBOL = 'X'

TERMINUS_SYMBOLS = frozenset({
    TERMINUS_SYMBOL_SEQUEST,
    TERMINUS_SYMBOL_XTANDEM_N_TERMINUS,
    TERMINUS_SYMBOL_XTANDEM_C_TERMINUS,
})

TRYPSIN_LEFT_RESIDUE_REGEX = "[KR]"
TRYPSIN_RIGHT_RESIDUE_REGEX = "[^P]"

_NOT_LETTER = re.compile(r"[^A-Za-z]")


class PeptideCleavageState(IntEnum):
    """Agreement of a peptide's flanks with the enzyme rule (higher is more specific)."""
    UNKNOWN = -1
    NON_SPECIFIC = 0
    PARTIAL = 1
    FULL = 2


class PeptideTerminusState(IntEnum):
    """Position of a peptide relative to the ends of its protein."""
    NONE = 0
    PROTEIN_N_TERMINUS = 1
    PROTEIN_C_TERMINUS = 2
    PROTEIN_N_AND_C_TERMINUS = 3


class StandardCleavageAgent(Enum):
    """Enzymes with a predefined cleavage rule."""
    TRYPSIN = "Trypsin"
    TRYPSIN_WITHOUT_PROLINE_RULE = "TrypsinWithoutProlineRule"
    TRYPSIN_PLUS_FVLEY = "TrypsinPlusFVLEY"
    CHYMOTRYPSIN = "Chymotrypsin"
    CHYMOTRYPSIN_AND_TRYPSIN = "ChymotrypsinAndTrypsin"
    GLU_C = "GluC"
    CYAN_BR = "CyanBr"
    ENDO_ARG_C = "EndoArgC"
    ENDO_LYS_C = "EndoLysC"
    ENDO_ASP_N = "EndoAspN"
    NO_RULE = "NoRule"

    @classmethod
    def from_name(cls, name: str) -> 'StandardCleavageAgent':
        """Look up an agent by name, ignoring case, '-' and '_'."""
        key = name.replace("-", "").replace("_", "").lower()
        for agent in cls:
            if agent.value.lower() == key or agent.name.replace("_", "").lower() == key:
                return agent
        raise ValueError(f"Unknown cleavage agent: {name}")


# Left residue regex (before the cut), right residue regex (after the cut)
STANDARD_CLEAVAGE_RULES = {
    StandardCleavageAgent.TRYPSIN: (TRYPSIN_LEFT_RESIDUE_REGEX, TRYPSIN_RIGHT_RESIDUE_REGEX),
    StandardCleavageAgent.TRYPSIN_WITHOUT_PROLINE_RULE: ("[KR]", "[A-Z]"),
    StandardCleavageAgent.TRYPSIN_PLUS_FVLEY: ("[KRFYVEL]", "[A-Z]"),
    StandardCleavageAgent.CHYMOTRYPSIN: ("[FWYL]", "[A-Z]"),
    StandardCleavageAgent.CHYMOTRYPSIN_AND_TRYPSIN: ("[FWYLKR]", "[A-Z]"),
    StandardCleavageAgent.GLU_C: ("[ED]", "[A-Z]"),
    StandardCleavageAgent.CYAN_BR: ("[M]", "[A-Z]"),
    StandardCleavageAgent.ENDO_ARG_C: ("[R]", "[A-Z]"),
    StandardCleavageAgent.ENDO_LYS_C: ("[K]", "[A-Z]"),
    StandardCleavageAgent.ENDO_ASP_N: ("[A-Z]", "[D]"),
    StandardCleavageAgent.NO_RULE: ("[A-Z]", "[A-Z]"),
}


def _normalize_residue_regex(regex: str) -> str:
    if not regex:
        return "[A-Z]"
    if regex in (GENERIC_RESIDUE_SYMBOL, f"[{GENERIC_RESIDUE_SYMBOL}]"):
        return "[A-Z]"
    if regex == f"[^{GENERIC_RESIDUE_SYMBOL}]":
        return "[^A-Z]"
    return regex


@dataclass(frozen=True)
class EnzymeMatchSpec:
    """Cleavage rule as a pair of single-residue regular expressions.

    A cut is expected between a residue matching ``left_residue_regex``
    and a residue matching ``right_residue_regex``.
    """

    left_residue_regex: str = TRYPSIN_LEFT_RESIDUE_REGEX
    right_residue_regex: str = TRYPSIN_RIGHT_RESIDUE_REGEX

    @classmethod
    def from_regex(cls, left_residue_regex: str, right_residue_regex: str) -> 'EnzymeMatchSpec':
        """Build a rule, expanding the generic residue 'X' to any letter."""
        return cls(
            _normalize_residue_regex(left_residue_regex),
            _normalize_residue_regex(right_residue_regex),
        )

    @classmethod
    def for_agent(cls, agent: Union[StandardCleavageAgent, str]) -> 'EnzymeMatchSpec':
        if isinstance(agent, str):
            agent = StandardCleavageAgent.from_name(agent)
        left, right = STANDARD_CLEAVAGE_RULES[agent]
        return cls(left, right)

    @property
    def is_standard_trypsin(self) -> bool:
        return (self.left_residue_regex == TRYPSIN_LEFT_RESIDUE_REGEX and
                self.right_residue_regex == TRYPSIN_RIGHT_RESIDUE_REGEX)


# MS-GF+ EnzymeID parameter values
MSGF_ENZYME_RULES = {
    0: EnzymeMatchSpec.for_agent(StandardCleavageAgent.NO_RULE),      # unspecific cleavage
    1: EnzymeMatchSpec.for_agent(StandardCleavageAgent.TRYPSIN),
    2: EnzymeMatchSpec.for_agent(StandardCleavageAgent.CHYMOTRYPSIN),
    3: EnzymeMatchSpec.for_agent(StandardCleavageAgent.ENDO_LYS_C),
    4: EnzymeMatchSpec("[A-Z]", "[K]"),                                # Lys-N
    5: EnzymeMatchSpec.for_agent(StandardCleavageAgent.GLU_C),
    6: EnzymeMatchSpec.for_agent(StandardCleavageAgent.ENDO_ARG_C),
    7: EnzymeMatchSpec.for_agent(StandardCleavageAgent.ENDO_ASP_N),
    8: EnzymeMatchSpec("[TASV]", "[A-Z]"),                             # alpha-lytic protease
    9: EnzymeMatchSpec.for_agent(StandardCleavageAgent.NO_RULE),      # no cleavage (peptidomics)
}


def get_enzyme_from_msgf_id(enzyme_id: int) -> EnzymeMatchSpec:
    """Cleavage rule for an MS-GF+ EnzymeID value.

    Raises
    ------
    ValueError
        If the id is not a known MS-GF+ enzyme
    """
    if enzyme_id not in MSGF_ENZYME_RULES:
        raise ValueError(f"Unknown MS-GF+ EnzymeID: {enzyme_id}")
    return MSGF_ENZYME_RULES[enzyme_id]


# =============================================================================
# Sequence Parsing
# =============================================================================

class SplitSequence(NamedTuple):
    primary_sequence: str
    prefix: str
    suffix: str
    has_prefix_and_suffix: bool


def split_prefix_and_suffix(sequence: str) -> SplitSequence:
    """Split a peptide written as ``prefix.PRIMARY.suffix``.

    More than one character may precede the first period or follow the last
    one. A leading or trailing ``..`` (no flanking residue information) is
    treated as a single period. Modification symbols inside the primary
    sequence are kept.

    Parameters
    ----------
    sequence : str
        Peptide, e.g. "K.PEPTIDE.G", "-.M#PEPTIDE.-" or "PEPTIDE"

    Returns
    -------
    SplitSequence
        ``has_prefix_and_suffix`` is False when no delimiters were found, in
        which case the primary sequence is the input text

    Examples
    --------
    >>> split_prefix_and_suffix("..PEPTIDE..")
    SplitSequence(primary_sequence='PEPTIDE', prefix='', suffix='', has_prefix_and_suffix=True)
    >>> split_prefix_and_suffix("PEPTIDE").primary_sequence
    'PEPTIDE'
    """
    if not sequence:
        return SplitSequence("", "", "", False)

    if sequence.startswith("..") and len(sequence) > 2:
        sequence = "." + sequence[2:]
    if sequence.endswith("..") and len(sequence) > 2:
        sequence = sequence[:-2] + "."

    period_loc1 = sequence.find('.')
    if period_loc1 < 0:
        return SplitSequence(sequence, "", "", False)

    period_loc2 = sequence.rfind('.')

    if period_loc2 > period_loc1 + 1:
        # Two periods with text between them, e.g. R.PEPTIDEK.L or RPEP.TIDESEQK.L
        return SplitSequence(
            sequence[period_loc1 + 1:period_loc2],
            sequence[:period_loc1],
            sequence[period_loc2 + 1:],
            True,
        )

    if period_loc2 == period_loc1 + 1:
        # Two periods in a row
        if period_loc1 <= 1:
            return SplitSequence("", sequence[:period_loc1], sequence[period_loc2 + 1:], True)
        return SplitSequence(sequence, "", "", False)

    # Only one period
    if period_loc1 == 0:
        return SplitSequence(sequence[1:], "", "", True)

    if period_loc1 == len(sequence) - 1:
        return SplitSequence(sequence[:period_loc1], "", "", True)

    if period_loc1 == 1 and len(sequence) > 2:
        return SplitSequence(sequence[2:], sequence[:1], "", True)

    if period_loc1 == len(sequence) - 2:
        return SplitSequence(sequence[:period_loc1], "", sequence[period_loc1 + 1:], True)

    return SplitSequence(sequence, "", "", False)


def extract_clean_sequence(sequence_with_mods: Optional[str],
                           check_for_prefix_and_suffix: bool = True) -> str:
    """Remove modification symbols (and optionally the flanking residues).

    >>> extract_clean_sequence("K.M*PEP#TIDE.G")
    'MPEPTIDE'
    """
    if sequence_with_mods is None:
        return ""

    if check_for_prefix_and_suffix:
        parts = split_prefix_and_suffix(sequence_with_mods)
        if parts.has_prefix_and_suffix:
            return _NOT_LETTER.sub("", parts.primary_sequence)

    return _NOT_LETTER.sub("", sequence_with_mods)


def _is_letter(char: str) -> bool:
    return ('A' <= char <= 'Z') or ('a' <= char <= 'z')


def _letter_nearest_end(text: str) -> str:
    if not text:
        return TERMINUS_SYMBOL_SEQUEST
    index = len(text) - 1
    char = text[index]
    while not (_is_letter(char) or char in TERMINUS_SYMBOLS) and index > 0:
        index -= 1
        char = text[index]
    return char


def _letter_nearest_start(text: str) -> str:
    if not text:
        return TERMINUS_SYMBOL_SEQUEST
    index = 0
    char = text[index]
    while not (_is_letter(char) or char in TERMINUS_SYMBOLS) and index < len(text) - 1:
        index += 1
        char = text[index]
    return char


# =============================================================================
# Classifier
# =============================================================================

class PeptideCleavageClassifier:
    """Classify peptides against an enzyme cleavage rule.

    Parameters
    ----------
    enzyme : EnzymeMatchSpec, StandardCleavageAgent or str
        Cleavage rule, standard agent, or standard agent name (default: trypsin)
    """

    def __init__(self, enzyme: Union[EnzymeMatchSpec, StandardCleavageAgent, str] = StandardCleavageAgent.TRYPSIN):
        self._left_regex = None
        self._right_regex = None
        self._using_standard_trypsin = False
        self.enzyme_match_spec = EnzymeMatchSpec()

        if isinstance(enzyme, EnzymeMatchSpec):
            self.set_enzyme_match_spec(enzyme.left_residue_regex, enzyme.right_residue_regex)
        else:
            self.set_standard_enzyme(enzyme)

    def set_enzyme_match_spec(self, left_residue_regex: str, right_residue_regex: str) -> None:
        """Use a custom rule; matching ignores case."""
        spec = EnzymeMatchSpec.from_regex(left_residue_regex, right_residue_regex)
        self._left_regex = re.compile(spec.left_residue_regex, re.IGNORECASE)
        self._right_regex = re.compile(spec.right_residue_regex, re.IGNORECASE)
        self._using_standard_trypsin = spec.is_standard_trypsin
        self.enzyme_match_spec = spec

    def set_standard_enzyme(self, agent: Union[StandardCleavageAgent, str]) -> None:
        spec = EnzymeMatchSpec.for_agent(agent)
        self.set_enzyme_match_spec(spec.left_residue_regex, spec.right_residue_regex)

    def test_cleavage_rule(self, left_char: str, right_char: str) -> bool:
        """True if a cut is expected between the two residues."""
        if self._using_standard_trypsin:
            return left_char.upper() in ('K', 'R') and right_char.upper() != 'P'
        return (self._left_regex.match(left_char) is not None and
                self._right_regex.match(right_char) is not None)

    @staticmethod
    def terminus_state_from_flanks(prefix: str, suffix: str) -> PeptideTerminusState:
        """Terminus state given the residues directly before and after a peptide."""
        if prefix in TERMINUS_SYMBOLS:
            if suffix in TERMINUS_SYMBOLS:
                return PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS
            return PeptideTerminusState.PROTEIN_N_TERMINUS
        if suffix in TERMINUS_SYMBOLS:
            return PeptideTerminusState.PROTEIN_C_TERMINUS
        return PeptideTerminusState.NONE

    def compute_cleavage_state(self, clean_sequence: str,
                               prefix_residues: Optional[str] = None,
                               suffix_residues: Optional[str] = None) -> PeptideCleavageState:
        """Cleavage state of a peptide.

        Parameters
        ----------
        clean_sequence : str
            Peptide without flanking residues, or, when prefix_residues and
            suffix_residues are both None, a peptide such as "K.PEPTIDE.G"
        prefix_residues, suffix_residues : str, optional
            Flanking residues; an empty value counts as a protein terminus

        Returns
        -------
        PeptideCleavageState
            FULL when both flanks follow the rule, PARTIAL for one,
            NON_SPECIFIC for none. Peptides at a protein terminus are only
            FULL or NON_SPECIFIC.
        """
        if prefix_residues is None and suffix_residues is None:
            parts = split_prefix_and_suffix(clean_sequence)
            if not parts.has_prefix_and_suffix:
                return PeptideCleavageState.NON_SPECIFIC
            clean_sequence, prefix_residues, suffix_residues = parts[:3]

        if not clean_sequence:
            return PeptideCleavageState.NON_SPECIFIC

        prefix = _letter_nearest_end(prefix_residues or "")
        suffix = _letter_nearest_start(suffix_residues or "")
        sequence_start = _letter_nearest_start(clean_sequence)
        sequence_end = _letter_nearest_end(clean_sequence)

        terminus_state = self.terminus_state_from_flanks(prefix, suffix)

        if terminus_state == PeptideTerminusState.PROTEIN_N_AND_C_TERMINUS:
            # Peptide spans the whole protein
            return PeptideCleavageState.FULL

        if terminus_state == PeptideTerminusState.PROTEIN_N_TERMINUS:
            if self.test_cleavage_rule(sequence_end, suffix):
                return PeptideCleavageState.FULL
            return PeptideCleavageState.NON_SPECIFIC

        if terminus_state == PeptideTerminusState.PROTEIN_C_TERMINUS:
            if self.test_cleavage_rule(prefix, sequence_start):
                return PeptideCleavageState.FULL
            return PeptideCleavageState.NON_SPECIFIC

        rule_match_start = self.test_cleavage_rule(prefix, sequence_start)
        rule_match_end = self.test_cleavage_rule(sequence_end, suffix)

        if rule_match_start and rule_match_end:
            return PeptideCleavageState.FULL
        if rule_match_start or rule_match_end:
            return PeptideCleavageState.PARTIAL
        return PeptideCleavageState.NON_SPECIFIC

    def compute_terminus_state(self, clean_sequence: str,
                               prefix_residues: Optional[str] = None,
                               suffix_residues: Optional[str] = None) -> PeptideTerminusState:
        """Terminus state of a peptide; arguments as for compute_cleavage_state."""
        if prefix_residues is None and suffix_residues is None:
            parts = split_prefix_and_suffix(clean_sequence)
            if not parts.has_prefix_and_suffix:
                return PeptideTerminusState.NONE
            clean_sequence, prefix_residues, suffix_residues = parts[:3]

        if not clean_sequence:
            return PeptideTerminusState.NONE

        return self.terminus_state_from_flanks(
            _letter_nearest_end(prefix_residues or ""),
            _letter_nearest_start(suffix_residues or ""),
        )

    def compute_number_of_missed_cleavages(self, sequence: str) -> int:
        """Count the internal residue pairs that match the cleavage rule.

        Flanking residues (``K.PEPTIDE.G``) and modification symbols are ignored.

        >>> PeptideCleavageClassifier().compute_number_of_missed_cleavages("R.AKPEKTIDR.G")
        1
        """
        primary_sequence = split_prefix_and_suffix(sequence).primary_sequence
        if not primary_sequence or not primary_sequence.strip():
            return 0

        missed_cleavages = 0
        previous_letter = ""
        for char in primary_sequence:
            if not _is_letter(char):
                continue
            if previous_letter and self.test_cleavage_rule(previous_letter, char):
                missed_cleavages += 1
            previous_letter = char

        return missed_cleavages
