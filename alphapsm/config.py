"""Run configuration: annotation options and search engine parameters.

Search engine parameters are read from ``Key=Value`` parameter files in the
MS-GF+ convention::

    EnzymeID=1
    PrecursorMassTolerance=20ppm
    StaticMod=C2H3N1O1,C,fix,any,Carbamidomethyl    # Fixed Carbamidomethyl C
    DynamicMod=O1,M,opt,any,Oxidation
    DynamicMod=HO3P,STY,opt,any,Phospho
    DynamicMod=C2H2O,*,opt,Prot-N-term,Acetyl

Each modification declaration lists a mass or empirical formula, the target
residues (``*`` for any), ``fix`` or ``opt``, the position (any, N-term,
C-term, Prot-N-term, Prot-C-term) and a name.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Union

from .cleavage import (
    EnzymeMatchSpec,
    PeptideCleavageClassifier,
    StandardCleavageAgent,
    get_enzyme_from_msgf_id,
)
from .constants import (
    C_TERMINAL_PEPTIDE_SYMBOL,
    C_TERMINAL_PROTEIN_SYMBOL,
    MASS_DIGITS_OF_PRECISION,
    N_TERMINAL_PEPTIDE_SYMBOL,
    N_TERMINAL_PROTEIN_SYMBOL,
    PROTON_MASS,
)
from .formula import ChemicalFormulaEvaluator
from .modifications import ModificationDefinition, ModificationType, ResidueTerminusState
from .registry import ModificationRegistry, parse_float
from .tolerance import PrecursorMassTolerance

logger = logging.getLogger(__name__)

PARAM_TAG_MOD_STATIC = "StaticMod"
PARAM_TAG_MOD_DYNAMIC = "DynamicMod"
COMMENT_CHAR = "#"

# Formula names that search engines accept in place of an empirical formula
SPECIAL_FORMULA_MASSES = {
    "hexnac": 203.079376,
}


class ModificationPosition(Enum):
    """Where a declared modification may occur."""
    ANY = "any"
    N_TERM = "N-term"
    C_TERM = "C-term"
    PROT_N_TERM = "Prot-N-term"
    PROT_C_TERM = "Prot-C-term"

    @classmethod
    def from_text(cls, text: str) -> 'ModificationPosition':
        """Parse a position such as "Prot-N-term" (case and dashes ignored)."""
        key = text.strip().lower().replace("-", "").replace("_", "")
        for position in cls:
            if position.value.lower().replace("-", "") == key:
                return position
        raise ValueError(f"Unrecognized modification position: {text}")


# (position, is_static) -> (modification type, terminus state, target symbol)
_TERMINUS_DECLARATIONS = {
    (ModificationPosition.N_TERM, True): (ModificationType.TERMINAL_PEPTIDE_STATIC,
                                          ResidueTerminusState.PEPTIDE_N_TERMINUS, N_TERMINAL_PEPTIDE_SYMBOL),
    (ModificationPosition.C_TERM, True): (ModificationType.TERMINAL_PEPTIDE_STATIC,
                                          ResidueTerminusState.PEPTIDE_C_TERMINUS, C_TERMINAL_PEPTIDE_SYMBOL),
    (ModificationPosition.PROT_N_TERM, True): (ModificationType.PROTEIN_TERMINUS_STATIC,
                                               ResidueTerminusState.PROTEIN_N_TERMINUS, N_TERMINAL_PROTEIN_SYMBOL),
    (ModificationPosition.PROT_C_TERM, True): (ModificationType.PROTEIN_TERMINUS_STATIC,
                                               ResidueTerminusState.PROTEIN_C_TERMINUS, C_TERMINAL_PROTEIN_SYMBOL),
    (ModificationPosition.N_TERM, False): (ModificationType.DYNAMIC,
                                           ResidueTerminusState.PEPTIDE_N_TERMINUS, N_TERMINAL_PEPTIDE_SYMBOL),
    (ModificationPosition.C_TERM, False): (ModificationType.DYNAMIC,
                                           ResidueTerminusState.PEPTIDE_C_TERMINUS, C_TERMINAL_PEPTIDE_SYMBOL),
    (ModificationPosition.PROT_N_TERM, False): (ModificationType.DYNAMIC,
                                                ResidueTerminusState.PROTEIN_N_TERMINUS, N_TERMINAL_PROTEIN_SYMBOL),
    (ModificationPosition.PROT_C_TERM, False): (ModificationType.DYNAMIC,
                                                ResidueTerminusState.PROTEIN_C_TERMINUS, C_TERMINAL_PROTEIN_SYMBOL),
}


@dataclass
class AnnotationOptions:
    """Settings used while annotating search results."""

    # Modification mass matching
    digits_of_precision: int = MASS_DIGITS_OF_PRECISION
    digits_of_precision_loose: int = MASS_DIGITS_OF_PRECISION

    # Modification application
    allow_duplicate_mod_on_terminus: bool = False
    update_occurrence_counts: bool = True

    # Mass error
    adjust_precursor_mass_for_c13: bool = True
    charge_carrier_mass: float = PROTON_MASS

    @classmethod
    def for_engine(cls, engine_name: str) -> 'AnnotationOptions':
        """Defaults for a search engine.

        MSAlign and TopPIC report modification masses with fewer decimals,
        so masses are also matched at 2 digits.
        """
        key = engine_name.strip().lower().replace("-", "").replace("_", "")
        if key in ("msalign", "toppic"):
            return cls(digits_of_precision_loose=2)
        return cls()


@dataclass
class ModificationDeclaration:
    """One modification as declared in a search engine parameter file."""

    mass_or_formula: str
    residues: str
    is_static: bool
    position: ModificationPosition = ModificationPosition.ANY
    name: str = ""

    @classmethod
    def from_mod_spec(cls, mod_spec: str) -> 'ModificationDeclaration':
        """Parse "C2H3N1O1,C,fix,any,Carbamidomethyl".

        Raises
        ------
        ValueError
            If fewer than five fields are present
        """
        fields = [part.strip() for part in _trim_comment(mod_spec).split(',')]
        if len(fields) < 5:
            raise ValueError(f"Modification declaration needs 5 comma-separated fields: {mod_spec}")

        mod_type = fields[2].lower()
        if mod_type not in ("fix", "opt"):
            logger.warning(f"Unrecognized modification type '{fields[2]}' in {mod_spec}; assuming 'opt'")
        return cls(
            mass_or_formula=fields[0],
            residues=fields[1],
            is_static=mod_type == "fix",
            position=ModificationPosition.from_text(fields[3]),
            name=fields[4],
        )

    def resolve_mass(self, evaluator: Optional[ChemicalFormulaEvaluator] = None) -> Optional[float]:
        """Mass of the declaration; None if the formula cannot be evaluated."""
        mass = parse_float(self.mass_or_formula)
        if mass is not None:
            return mass

        special_mass = SPECIAL_FORMULA_MASSES.get(self.mass_or_formula.lower())
        if special_mass is not None:
            return special_mass

        if evaluator is None:
            evaluator = ChemicalFormulaEvaluator()
        return evaluator.try_compute_mass(self.mass_or_formula, self.name)


@dataclass
class SearchEngineParameters:
    """Enzyme, modifications and tolerances of one search.

    Parameters
    ----------
    search_engine_name : str
        Engine that produced the results
    enzyme : EnzymeMatchSpec
        Cleavage rule (default: trypsin)
    modifications : list of ModificationDeclaration
        Declared static and dynamic modifications
    n_terminus_mass_change, c_terminus_mass_change : float
        Replacement peptide terminus masses; 0 keeps the defaults (H and OH)
    precursor_tolerance : PrecursorMassTolerance, optional
        Precursor mass tolerance of the search
    min_number_termini : int
        Number of enzymatic termini required by the search (0, 1 or 2)
    parameters : dict
        All Key=Value settings read from the file (keys lowercase)
    """

    search_engine_name: str = "MS-GF+"
    enzyme: EnzymeMatchSpec = field(default_factory=lambda: EnzymeMatchSpec.for_agent(StandardCleavageAgent.TRYPSIN))
    modifications: List[ModificationDeclaration] = field(default_factory=list)
    n_terminus_mass_change: float = 0.0
    c_terminus_mass_change: float = 0.0
    precursor_tolerance: Optional[PrecursorMassTolerance] = None
    min_number_termini: int = 2
    parameters: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_param_file(cls, file_path: Union[str, Path],
                        search_engine_name: str = "MS-GF+") -> 'SearchEngineParameters':
        """Read a Key=Value parameter file.

        Recognised keys (case-insensitive): StaticMod, DynamicMod, EnzymeID,
        Enzyme (standard agent name), PrecursorMassTolerance (or PMTolerance),
        NTT and NNET. Lines of a Mods.txt file (no key, but ",fix," or
        ",opt," in the line) are also read as declarations.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        ValueError
            If the enzyme name or tolerance units are not recognised
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Parameter file not found: {file_path}")

        params = cls(search_engine_name=search_engine_name)

        with open(file_path) as f:
            for line in f:
                trimmed = line.strip()
                if not trimmed or trimmed.startswith(COMMENT_CHAR):
                    continue

                if '=' not in trimmed:
                    no_spaces = _trim_comment(trimmed).replace(" ", "")
                    if ",fix," in no_spaces or ",opt," in no_spaces:
                        params.modifications.append(ModificationDeclaration.from_mod_spec(no_spaces))
                    continue

                key, value = trimmed.split('=', 1)
                key = key.strip()
                value = _trim_comment(value)

                if key.lower() in (PARAM_TAG_MOD_STATIC.lower(), PARAM_TAG_MOD_DYNAMIC.lower()):
                    if value and value.lower() != "none":
                        params.modifications.append(ModificationDeclaration.from_mod_spec(value))
                    continue

                params.parameters[key.lower()] = value

        params._apply_parameters()
        logger.info(f"Read {len(params.modifications)} modification declarations from {file_path.name}")
        return params

    def _apply_parameters(self) -> None:
        enzyme_id = self.parameters.get("enzymeid")
        if enzyme_id is not None and enzyme_id.strip().lstrip('-').isdigit():
            self.enzyme = get_enzyme_from_msgf_id(int(enzyme_id))
        elif "enzyme" in self.parameters:
            self.enzyme = EnzymeMatchSpec.for_agent(StandardCleavageAgent.from_name(self.parameters["enzyme"]))

        tolerance = self.parameters.get("precursormasstolerance", self.parameters.get("pmtolerance"))
        if tolerance:
            self.precursor_tolerance = PrecursorMassTolerance.from_text(tolerance)

        if "nnet" in self.parameters and self.parameters["nnet"].isdigit():
            # Number of non-enzymatic termini
            self.min_number_termini = {0: 2, 1: 1}.get(int(self.parameters["nnet"]), 0)
        elif "ntt" in self.parameters and self.parameters["ntt"].isdigit():
            # Number of tolerable termini
            self.min_number_termini = {0: 0, 1: 1}.get(int(self.parameters["ntt"]), 2)

    def create_classifier(self) -> PeptideCleavageClassifier:
        return PeptideCleavageClassifier(self.enzyme)

    def apply_to_registry(self, registry: ModificationRegistry,
                          evaluator: Optional[ChemicalFormulaEvaluator] = None) -> List[ModificationDefinition]:
        """Register every declared modification.

        Declarations whose formula cannot be evaluated are logged and
        skipped. A fixed terminus mod restricted to specific residues is
        registered as a dynamic mod.

        Returns
        -------
        list of ModificationDefinition
            The registered definition of each declaration that resolved
        """
        if evaluator is None:
            evaluator = ChemicalFormulaEvaluator()

        registered = []
        for declaration in self.modifications:
            mass = declaration.resolve_mass(evaluator)
            if mass is None:
                logger.warning(f"Skipping modification {declaration.name}: "
                               f"cannot compute the mass of '{declaration.mass_or_formula}'")
                continue

            residues = declaration.residues.strip()
            if declaration.position == ModificationPosition.ANY:
                modification_type = ModificationType.STATIC if declaration.is_static else ModificationType.DYNAMIC
                terminus_state = ResidueTerminusState.NONE
                target_residues = [residue for residue in residues if residue != '*'] or [""]
            else:
                is_static = declaration.is_static and residues in ("*", "")
                modification_type, terminus_state, symbol = _TERMINUS_DECLARATIONS[(declaration.position, is_static)]
                target_residues = [symbol]

            definition = None
            for residue in target_residues:
                definition, _ = registry.lookup_modification_definition_by_mass_and_type(
                    mass, modification_type, residue, terminus_state)
            registered.append(definition)
            logger.debug(f"Registered {declaration.name} as {definition}")

        return registered


def _trim_comment(value: str) -> str:
    comment_index = value.find(COMMENT_CHAR)
    if comment_index > 0:
        return value[:comment_index].strip()
    return value.strip()
