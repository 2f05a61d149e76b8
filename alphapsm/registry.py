"""Modification registry: the symbol table of modifications for one run.

The registry resolves modifications reported by search engines, either by
display symbol or by mass, to shared ModificationDefinition instances.
Masses that match no known definition are registered automatically, so a
registry grows monotonically while a batch of PSMs is annotated.

One registry is created per processing run and passed explicitly to the
components that resolve modifications.

Examples
--------
>>> registry = ModificationRegistry()
>>> registry.lookup_mass_correction_tag_by_mass(15.9949)
'Plus1Oxy'
>>> definition, found = registry.lookup_modification_definition_by_mass(
...     79.9663, "S", ResidueTerminusState.NONE)
>>> found, definition.mass_correction_tag, definition.modification_symbol
(False, 'Phosph', '*')
"""

import csv
import logging
import math
from collections import deque
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterator, List, NamedTuple, Optional, Union

from .constants import (
    DEFAULT_MASS_CORRECTION_TAGS,
    DEFAULT_MODIFICATION_SYMBOLS,
    H2O_LOSS_MASS,
    INITIAL_UNKNOWN_MASS_CORRECTION_TAG_NAME,
    INTEGER_MASS_CORRECTION_TAGS,
    LAST_RESORT_MODIFICATION_SYMBOL,
    MASS_DIGITS_OF_PRECISION,
    NAMED_MODIFICATION_MASSES,
    NH3_LOSS_MASS,
    NO_AFFECTED_ATOM_SYMBOL,
    NO_SYMBOL_MODIFICATION_SYMBOL,
    TERMINUS_TARGET_SYMBOLS,
    C_TERMINAL_PEPTIDE_SYMBOL,
    C_TERMINAL_PROTEIN_SYMBOL,
    N_TERMINAL_PEPTIDE_SYMBOL,
    N_TERMINAL_PROTEIN_SYMBOL,
)
from .formula import is_known_element
from .modifications import (
    ModificationDefinition,
    ModificationType,
    ResidueTerminusState,
    equivalent_target_residues,
)

logger = logging.getLogger(__name__)

MOD_SUMMARY_COLUMNS = (
    "Modification_Symbol",
    "Modification_Mass",
    "Target_Residues",
    "Modification_Type",
    "Mass_Correction_Tag",
    "Occurrence_Count",
)

# Types considered when resolving a modification by mass
_MASS_LOOKUP_TYPES = (ModificationType.DYNAMIC, ModificationType.STATIC, ModificationType.UNKNOWN)

# Types that carry a display symbol in the peptide sequence
_SYMBOL_TYPES = (ModificationType.DYNAMIC, ModificationType.UNKNOWN)


class ModificationLookup(NamedTuple):
    definition: ModificationDefinition
    existing_mod_found: bool


def mass_within_precision(mass_difference: float, digits_of_precision: int) -> bool:
    """True if a mass difference is smaller than 10^-digits_of_precision."""
    return abs(mass_difference) < 10.0 ** -digits_of_precision


def generate_generic_mod_mass_name(modification_mass: float) -> str:
    """Eight-character name for a modification mass without a known tag.

    >>> generate_generic_mod_mass_name(15.9949)
    '+15.9949'
    >>> generate_generic_mod_mass_name(-18.0106)
    '-18.0106'
    >>> generate_generic_mod_mass_name(0.984)
    '+0.98400'
    """
    if modification_mass == 0:
        return "+0.00000"
    if modification_mass < -9999999:
        return "-9999999"
    if modification_mass > 9999999:
        return "+9999999"

    # Digits left of the decimal point
    log_value = math.log10(abs(modification_mass))
    if abs(log_value - round(log_value)) < 1e-12:
        format_digits = int(round(log_value)) + 1
    else:
        format_digits = int(math.ceil(log_value))
    format_digits = max(format_digits, 1)

    decimals = max(0, 6 - format_digits)
    name = f"{modification_mass:+.{decimals}f}"
    # Rounding can add a digit, e.g. 9.999999
    while len(name) > 8 and decimals > 0:
        decimals -= 1
        name = f"{modification_mass:+.{decimals}f}"

    if len(name) < 8 and '.' not in name:
        name += '.'
    return name.ljust(8, '0')


class ModificationRegistry:
    """Modification definitions, mass correction tags and display symbols.

    Parameters
    ----------
    consider_mod_symbol_when_finding_identical_mods : bool
        When adding a definition, only merge it into an existing one with
        the same display symbol
    """

    def __init__(self, consider_mod_symbol_when_finding_identical_mods: bool = False):
        self.consider_mod_symbol_when_finding_identical_mods = consider_mod_symbol_when_finding_identical_mods
        self.modifications: List[ModificationDefinition] = []
        self._mass_correction_tags: Dict[str, float] = {}
        self._default_modification_symbols = deque()
        self._standard_refinement_modifications: List[ModificationDefinition] = []

        self.set_default_mass_correction_tags()
        self.clear_modifications()
        self._update_standard_refinement_modifications()

    # =========================================================================
    # Collection access
    # =========================================================================

    @property
    def modification_count(self) -> int:
        return len(self.modifications)

    def __len__(self) -> int:
        return len(self.modifications)

    def __iter__(self) -> Iterator[ModificationDefinition]:
        return iter(self.modifications)

    def get_modification_by_index(self, index: int) -> ModificationDefinition:
        """Definition at index, or a blank definition if out of range."""
        if 0 <= index < len(self.modifications):
            return self.modifications[index]
        return ModificationDefinition()

    def get_modification_type_by_index(self, index: int) -> ModificationType:
        if 0 <= index < len(self.modifications):
            return self.modifications[index].modification_type
        return ModificationType.UNKNOWN

    @property
    def available_modification_symbols(self) -> str:
        return "".join(self._default_modification_symbols)

    def clear_modifications(self) -> None:
        self._update_default_modification_symbols(DEFAULT_MODIFICATION_SYMBOLS)
        self.modifications.clear()

    def reset_occurrence_counts(self) -> None:
        for definition in self.modifications:
            definition.occurrence_count = 0

    def _update_default_modification_symbols(self, symbols: str) -> None:
        if not symbols:
            return
        self._default_modification_symbols.clear()
        for symbol in symbols:
            if symbol in (LAST_RESORT_MODIFICATION_SYMBOL, NO_SYMBOL_MODIFICATION_SYMBOL):
                continue
            if symbol not in self._default_modification_symbols:
                self._default_modification_symbols.append(symbol)

    def _remove_used_symbols_from_default_symbols(self) -> None:
        self._update_default_modification_symbols(DEFAULT_MODIFICATION_SYMBOLS)
        used = {definition.modification_symbol for definition in self.modifications}
        self._default_modification_symbols = deque(
            symbol for symbol in self._default_modification_symbols if symbol not in used
        )

    def _next_modification_symbol(self) -> str:
        if self._default_modification_symbols:
            return self._default_modification_symbols.popleft()
        return LAST_RESORT_MODIFICATION_SYMBOL

    # =========================================================================
    # Mass correction tags
    # =========================================================================

    @property
    def mass_correction_tags(self) -> Dict[str, float]:
        return dict(self._mass_correction_tags)

    def set_default_mass_correction_tags(self) -> None:
        self._mass_correction_tags = dict(DEFAULT_MASS_CORRECTION_TAGS)

    def store_mass_correction_tag(self, tag_name: str, mass: float) -> None:
        tag_name = tag_name.strip()
        if tag_name in self._mass_correction_tags:
            logger.debug(f"Ignoring duplicate mass correction tag {tag_name}")
            return
        self._mass_correction_tags[tag_name] = mass

    def read_mass_correction_tags_file(self, file_path: Union[str, Path, None]) -> None:
        """Replace the mass correction tags with those in a two-column file.

        Each tab-delimited line holds a tag name and its monoisotopic mass.
        Lines without a numeric mass (such as a header) are skipped. An empty
        path, or a file without valid lines, restores the default tags.

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        """
        if not file_path or not str(file_path).strip():
            self.set_default_mass_correction_tags()
            return

        file_path = Path(file_path)
        if not file_path.exists():
            self.set_default_mass_correction_tags()
            raise FileNotFoundError(f"Mass correction tags file not found: {file_path}")

        self._mass_correction_tags = {}
        with open(file_path, newline='') as f:
            for row in csv.reader(f, delimiter='\t'):
                if len(row) < 2 or not row[0].strip():
                    continue
                mass = parse_float(row[1])
                if mass is None:
                    continue
                self.store_mass_correction_tag(row[0], mass)

        if not self._mass_correction_tags:
            self.set_default_mass_correction_tags()

        logger.info(f"Read {len(self._mass_correction_tags)} mass correction tags from {file_path.name}")

    @staticmethod
    def _best_integer_based_mass_correction_tag(modification_mass: float) -> str:
        for integer_mass, tag_name in INTEGER_MASS_CORRECTION_TAGS.items():
            if abs(modification_mass - integer_mass) < 0.0001:
                return tag_name
        return ""

    def lookup_mass_correction_tag_by_mass(self, modification_mass: float,
                                           digits_of_precision: int = MASS_DIGITS_OF_PRECISION,
                                           add_to_tags_if_unknown: bool = True,
                                           digits_of_precision_loose: int = 1) -> str:
        """Name of the closest mass correction tag.

        The closest tag is accepted at digits_of_precision, then at each
        coarser precision down to digits_of_precision_loose. If none is
        close enough, a generic name such as "+15.9949" is returned (and
        stored as a new tag when add_to_tags_if_unknown is set).

        Parameters
        ----------
        modification_mass : float
            Mass to name
        digits_of_precision : int
            Precision of the first comparison
        add_to_tags_if_unknown : bool
            Store a generated name as a tag
        digits_of_precision_loose : int
            Coarsest precision tried; at 0 the integer-mass names are also
            consulted
        """
        digits_of_precision_loose = min(digits_of_precision_loose, digits_of_precision)

        for precision in range(digits_of_precision, digits_of_precision_loose - 1, -1):
            if digits_of_precision_loose == 0:
                integer_tag = self._best_integer_based_mass_correction_tag(modification_mass)
                if integer_tag:
                    return integer_tag

            closest_tag = ""
            closest_mass_diff = math.inf
            for tag_name, tag_mass in self._mass_correction_tags.items():
                mass_diff = abs(modification_mass - tag_mass)
                if mass_diff < closest_mass_diff:
                    closest_tag = tag_name
                    closest_mass_diff = mass_diff

            if closest_tag and mass_within_precision(closest_mass_diff, precision):
                return closest_tag

        generic_name = generate_generic_mod_mass_name(modification_mass)
        if add_to_tags_if_unknown:
            if generic_name in self._mass_correction_tags:
                logger.warning(f"Ignoring duplicate mass correction tag: {generic_name}, "
                               f"mass {modification_mass:.3f}")
            else:
                self._mass_correction_tags[generic_name] = modification_mass
        return generic_name

    def lookup_modification_mass_by_name(self, mod_name: str) -> Optional[float]:
        """Mass of a modification named by tag or common name (case-insensitive).

        >>> ModificationRegistry().lookup_modification_mass_by_name("Oxidation")
        15.994915
        """
        for tag_name, tag_mass in self._mass_correction_tags.items():
            if tag_name.lower() == mod_name.lower():
                return tag_mass
        return NAMED_MODIFICATION_MASSES.get(mod_name.lower())

    # =========================================================================
    # Adding definitions
    # =========================================================================

    def add_modification(self, definition: ModificationDefinition,
                         use_next_available_modification_symbol: bool) -> ModificationDefinition:
        """Add a definition, or merge it into an equivalent existing one.

        An existing definition with the same mass, type, tag and affected
        atom absorbs the new one; for dynamic and static mods its target
        residues are extended.

        Returns
        -------
        ModificationDefinition
            The registered instance (existing or newly added)
        """
        for existing in self.modifications:
            if not existing.equivalent_mass_type_tag_and_atom(definition):
                continue
            if (self.consider_mod_symbol_when_finding_identical_mods and
                    existing.modification_symbol != definition.modification_symbol):
                continue

            if existing.modification_type in (ModificationType.DYNAMIC, ModificationType.STATIC):
                for residue in definition.target_residues:
                    if not existing.target_residues_contain(residue):
                        existing.target_residues += residue
            return existing

        if use_next_available_modification_symbol and self._default_modification_symbols:
            definition.modification_symbol = self._default_modification_symbols.popleft()

        self.modifications.append(definition)
        return definition

    def _add_unknown_modification(self, modification_mass: float, modification_type: ModificationType,
                                  target_residue: str, terminus_state: ResidueTerminusState,
                                  add_if_unknown: bool, use_next_available_modification_symbol: bool,
                                  modification_symbol: str, digits_of_precision: int,
                                  digits_of_precision_loose: int) -> ModificationDefinition:
        target_residues = target_residue or ""
        if terminus_state != ResidueTerminusState.NONE and target_residues not in TERMINUS_TARGET_SYMBOLS:
            # Assume a terminus mod
            target_residues = terminus_state.terminus_target_symbol

        if not use_next_available_modification_symbol:
            modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL

        tag = self.lookup_mass_correction_tag_by_mass(
            modification_mass, digits_of_precision, True, digits_of_precision_loose)

        definition = ModificationDefinition(
            modification_symbol,
            modification_mass,
            target_residues,
            modification_type,
            tag,
            NO_AFFECTED_ATOM_SYMBOL,
            unknown_mod_auto_defined=True,
        )

        if not add_if_unknown:
            return definition

        registered = self.add_modification(
            definition, use_next_available_modification_symbol and bool(self._default_modification_symbols))
        logger.info(f"Registered unknown modification {registered.mass_correction_tag} "
                    f"({registered.modification_mass:+.4f} Da on '{registered.target_residues}', "
                    f"symbol {registered.modification_symbol})")
        return registered

    def verify_modification_present(self, modification_mass: float, target_residues: str,
                                    modification_type: ModificationType,
                                    digits_of_precision: int = MASS_DIGITS_OF_PRECISION) -> bool:
        """Make sure a modification with this mass, type and residues is registered.

        Returns True when the mod was already present or has been added.
        """
        digits_of_precision = max(digits_of_precision, 0)

        for existing in self.modifications:
            if existing.modification_type != modification_type:
                continue
            if round(abs(existing.modification_mass - modification_mass), digits_of_precision) != 0:
                continue
            if equivalent_target_residues(existing.target_residues, target_residues, True):
                return True

        definition = ModificationDefinition(
            modification_mass=modification_mass,
            target_residues=target_residues,
            modification_type=modification_type,
            mass_correction_tag=self.lookup_mass_correction_tag_by_mass(modification_mass),
        )
        self.add_modification(definition, modification_type in _SYMBOL_TYPES)
        return True

    def _update_standard_refinement_modifications(self) -> None:
        self._standard_refinement_modifications = [
            ModificationDefinition(
                LAST_RESORT_MODIFICATION_SYMBOL, NH3_LOSS_MASS, "Q", ModificationType.DYNAMIC,
                self.lookup_mass_correction_tag_by_mass(NH3_LOSS_MASS)),
            ModificationDefinition(
                LAST_RESORT_MODIFICATION_SYMBOL, H2O_LOSS_MASS, "E", ModificationType.DYNAMIC,
                self.lookup_mass_correction_tag_by_mass(H2O_LOSS_MASS)),
        ]

    def append_standard_refinement_modifications(self) -> None:
        """Register NH3 loss on Q and H2O loss on E."""
        for definition in self._standard_refinement_modifications:
            self.verify_modification_present(
                definition.modification_mass, definition.target_residues, definition.modification_type)

    # =========================================================================
    # Lookups
    # =========================================================================

    def lookup_dynamic_modification_definition_by_target_info(
            self, modification_symbol: str, target_residue: str,
            terminus_state: ResidueTerminusState) -> ModificationLookup:
        """Find the dynamic mod with this display symbol for a residue.

        Mods listing the residue (or a matching terminus symbol) are
        preferred, then mods without target residues, then any dynamic mod
        with the symbol. If none has the symbol, an unregistered definition
        with mass 0 is returned and existing_mod_found is False.
        """
        if target_residue or terminus_state != ResidueTerminusState.NONE:
            for definition in self.modifications:
                if definition.modification_type not in _SYMBOL_TYPES or not definition.target_residues:
                    continue
                if definition.modification_symbol != modification_symbol:
                    continue
                if definition.targets_residue_or_terminus(target_residue, terminus_state):
                    return ModificationLookup(definition, True)

        for consider_target_residues in (True, False):
            for definition in self.modifications:
                if definition.modification_type not in _SYMBOL_TYPES:
                    continue
                if consider_target_residues and definition.target_residues.strip():
                    continue
                if definition.modification_symbol == modification_symbol:
                    return ModificationLookup(definition, True)

        definition = ModificationDefinition(
            modification_symbol, 0.0,
            mass_correction_tag=self.lookup_mass_correction_tag_by_mass(0.0),
        )
        return ModificationLookup(definition, False)

    def _match_by_mass(self, modification_mass: float, target_residue: str,
                       terminus_state: ResidueTerminusState,
                       digits_of_precision: int) -> Optional[ModificationDefinition]:
        """Closest registered mod with matching mass and residues, or None."""
        if target_residue or terminus_state != ResidueTerminusState.NONE:
            matched = []
            for definition in self.modifications:
                if definition.modification_type not in _MASS_LOOKUP_TYPES or not definition.target_residues:
                    continue
                mass_diff = abs(definition.modification_mass - modification_mass)
                if not mass_within_precision(mass_diff, digits_of_precision):
                    continue
                if definition.targets_residue_or_terminus(target_residue, terminus_state):
                    matched.append((mass_diff, definition))
            if matched:
                return _closest(matched)

        matched = []
        for definition in self.modifications:
            if definition.modification_type not in _MASS_LOOKUP_TYPES or definition.target_residues.strip():
                continue
            mass_diff = abs(definition.modification_mass - modification_mass)
            if mass_within_precision(mass_diff, digits_of_precision):
                matched.append((mass_diff, definition))
        if matched:
            return _closest(matched)

        return None

    def _match_dynamic_by_mass_ignoring_residues(self, modification_mass: float, target_residue: str,
                                                 digits_of_precision: int) -> Optional[ModificationDefinition]:
        matched = []
        for definition in self.modifications:
            if definition.modification_type not in _SYMBOL_TYPES:
                continue
            mass_diff = abs(definition.modification_mass - modification_mass)
            if mass_within_precision(mass_diff, digits_of_precision):
                matched.append((mass_diff, definition))
        if not matched:
            return None

        definition = _closest(matched)
        if target_residue and not definition.target_residues_contain(target_residue):
            definition.target_residues += target_residue
        return definition

    def lookup_modification_definition_by_mass(
            self, modification_mass: float, target_residue: str = "",
            terminus_state: ResidueTerminusState = ResidueTerminusState.NONE,
            digits_of_precision: int = MASS_DIGITS_OF_PRECISION,
            digits_of_precision_loose: int = MASS_DIGITS_OF_PRECISION,
            add_to_modification_list_if_unknown: bool = True) -> ModificationLookup:
        """Resolve a modification mass to a registered definition.

        Search order:

        1. Mods whose target residues contain the residue (or the terminus
           symbol for terminus_state), closest mass wins
        2. Mods without target residues
        3. NH3 loss on Q and H2O loss on E (registered on first use)
        4. Any dynamic mod of that mass; the residue is added to its targets
        5. Steps 1, 2 and 4 again at digits_of_precision_loose
        6. A new UNKNOWN-type definition is registered with the next
           free display symbol

        Two masses closer than 10^-digits_of_precision on the same residue
        and terminus resolve to the same instance.

        Parameters
        ----------
        modification_mass : float
            Mass shift reported by the search engine
        target_residue : str
            One-letter residue code, or '' for a terminus mod
        terminus_state : ResidueTerminusState
            Terminus context of the modified residue
        digits_of_precision : int
            Decimal places that must agree
        digits_of_precision_loose : int
            Coarser precision for the retry
        add_to_modification_list_if_unknown : bool
            Register auto-created definitions

        Returns
        -------
        ModificationLookup
            The definition, and whether an existing definition was found
        """
        definition = self._match_by_mass(modification_mass, target_residue, terminus_state,
                                         digits_of_precision)
        if definition is not None:
            return ModificationLookup(definition, True)

        # Standard refinement mods only apply to a specific residue
        if target_residue:
            for refinement in self._standard_refinement_modifications:
                mass_diff = abs(refinement.modification_mass - modification_mass)
                if not mass_within_precision(mass_diff, digits_of_precision):
                    continue
                if not refinement.target_residues_contain(target_residue):
                    continue
                definition = replace(refinement, modification_symbol=LAST_RESORT_MODIFICATION_SYMBOL)
                if add_to_modification_list_if_unknown and self._default_modification_symbols:
                    definition = self.add_modification(definition, True)
                return ModificationLookup(definition, True)

        definition = self._match_dynamic_by_mass_ignoring_residues(
            modification_mass, target_residue, digits_of_precision)
        if definition is not None:
            return ModificationLookup(definition, True)

        if digits_of_precision_loose < digits_of_precision:
            definition = self._match_by_mass(modification_mass, target_residue, terminus_state,
                                             digits_of_precision_loose)
            if definition is None:
                definition = self._match_dynamic_by_mass_ignoring_residues(
                    modification_mass, target_residue, digits_of_precision_loose)
            if definition is not None:
                logger.debug(f"Matched mass {modification_mass} to {definition.mass_correction_tag} "
                             f"at {digits_of_precision_loose} digits")
                return ModificationLookup(definition, True)

        definition = self._add_unknown_modification(
            modification_mass, ModificationType.UNKNOWN, target_residue, terminus_state,
            add_to_modification_list_if_unknown, True, LAST_RESORT_MODIFICATION_SYMBOL,
            digits_of_precision, digits_of_precision_loose)
        return ModificationLookup(definition, False)

    def lookup_modification_definition_by_mass_and_type(
            self, modification_mass: float, modification_type: ModificationType,
            target_residue: str = "",
            terminus_state: ResidueTerminusState = ResidueTerminusState.NONE,
            digits_of_precision: int = MASS_DIGITS_OF_PRECISION,
            digits_of_precision_loose: int = MASS_DIGITS_OF_PRECISION,
            add_to_modification_list_if_unknown: bool = True) -> ModificationLookup:
        """Like lookup_modification_definition_by_mass, restricted to one type.

        Static-type mods created here carry no display symbol.
        """
        if modification_type in (ModificationType.STATIC, ModificationType.PROTEIN_TERMINUS_STATIC,
                                 ModificationType.TERMINAL_PEPTIDE_STATIC):
            modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL
            use_next_symbol = False
        else:
            modification_symbol = LAST_RESORT_MODIFICATION_SYMBOL
            use_next_symbol = True

        if target_residue or terminus_state != ResidueTerminusState.NONE:
            for definition in self.modifications:
                if definition.modification_type != modification_type or not definition.target_residues:
                    continue
                if not mass_within_precision(definition.modification_mass - modification_mass,
                                             digits_of_precision):
                    continue
                if definition.targets_residue_or_terminus(target_residue, terminus_state):
                    return ModificationLookup(definition, True)

        for definition in self.modifications:
            if definition.modification_type != modification_type or definition.target_residues.strip():
                continue
            if mass_within_precision(definition.modification_mass - modification_mass, digits_of_precision):
                return ModificationLookup(definition, True)

        if target_residue:
            for refinement in self._standard_refinement_modifications:
                if not mass_within_precision(refinement.modification_mass - modification_mass,
                                             digits_of_precision):
                    continue
                if not refinement.target_residues_contain(target_residue):
                    continue
                definition = replace(refinement, modification_symbol=modification_symbol,
                                     modification_type=modification_type)
                if add_to_modification_list_if_unknown and self._default_modification_symbols:
                    definition = self.add_modification(definition, True)
                return ModificationLookup(definition, True)

        for definition in self.modifications:
            if definition.modification_type != modification_type:
                continue
            if not mass_within_precision(definition.modification_mass - modification_mass,
                                         digits_of_precision):
                continue
            if target_residue and not definition.target_residues_contain(target_residue):
                definition.target_residues += target_residue
            return ModificationLookup(definition, True)

        definition = self._add_unknown_modification(
            modification_mass, modification_type, target_residue, terminus_state,
            add_to_modification_list_if_unknown, use_next_symbol, modification_symbol,
            digits_of_precision, digits_of_precision_loose)
        return ModificationLookup(definition, False)

    # =========================================================================
    # Files
    # =========================================================================

    def read_modification_definitions_file(self, file_path: Union[str, Path, None]) -> int:
        """Load modification definitions from a tab-delimited file.

        Columns: symbol, mass, target residues, type (D/S/T/I/P), mass
        correction tag, affected atom. Only the first two are required.
        Target residues use one-letter codes plus ``<`` ``>`` (peptide
        termini) and ``[`` ``]`` (protein termini); omitted residues mean
        any residue. Lines without a single-character symbol and a
        numeric mass are skipped.

        Returns
        -------
        int
            Number of definitions in the registry

        Raises
        ------
        FileNotFoundError
            If the file does not exist
        """
        self.clear_modifications()

        if not file_path or not str(file_path).strip():
            return 0

        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Modification definition file not found: {file_path}")

        with open(file_path, newline='') as f:
            for row in csv.reader(f, delimiter='\t'):
                definition = self._parse_modification_definition_row(row)
                if definition is not None:
                    self.add_modification(definition, False)

        self._remove_used_symbols_from_default_symbols()
        logger.info(f"Read {len(self.modifications)} modification definitions from {file_path.name}")
        return len(self.modifications)

    def _parse_modification_definition_row(self, row: List[str]) -> Optional[ModificationDefinition]:
        if len(row) < 2 or len(row[0].strip()) != 1:
            return None
        mass = parse_float(row[1])
        if mass is None:
            return None

        definition = ModificationDefinition(row[0].strip(), mass)

        if len(row) >= 3:
            residues = "".join(
                residue for residue in row[2].strip().upper()
                if ('A' <= residue <= 'Z') or residue in TERMINUS_TARGET_SYMBOLS
            )
            definition.target_residues = residues

        if len(row) >= 4 and len(row[3].strip()) == 1:
            definition.modification_type = ModificationType.from_symbol(row[3].strip())
        if len(row) >= 4 and definition.modification_type == ModificationType.UNKNOWN:
            definition.modification_type = ModificationType.DYNAMIC

        if len(row) >= 5:
            definition.mass_correction_tag = row[4].strip()
        if len(row) >= 6:
            definition.affected_atom = row[5].strip()[:1] or NO_AFFECTED_ATOM_SYMBOL

        # Static mods on a single terminus symbol are terminus mods
        if len(definition.target_residues) == 1 and definition.modification_type == ModificationType.STATIC:
            if definition.target_residues in (N_TERMINAL_PEPTIDE_SYMBOL, C_TERMINAL_PEPTIDE_SYMBOL):
                definition.modification_type = ModificationType.TERMINAL_PEPTIDE_STATIC
            elif definition.target_residues in (N_TERMINAL_PROTEIN_SYMBOL, C_TERMINAL_PROTEIN_SYMBOL):
                definition.modification_type = ModificationType.PROTEIN_TERMINUS_STATIC

        valid = True
        if definition.modification_type == ModificationType.ISOTOPIC:
            definition.modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL
            valid = is_known_element(definition.affected_atom)
        elif definition.modification_type == ModificationType.TERMINAL_PEPTIDE_STATIC:
            definition.modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL
            valid = definition.target_residues in (N_TERMINAL_PEPTIDE_SYMBOL, C_TERMINAL_PEPTIDE_SYMBOL)
        elif definition.modification_type == ModificationType.PROTEIN_TERMINUS_STATIC:
            definition.modification_symbol = NO_SYMBOL_MODIFICATION_SYMBOL
            valid = definition.target_residues in (N_TERMINAL_PROTEIN_SYMBOL, C_TERMINAL_PROTEIN_SYMBOL)
        elif definition.modification_type == ModificationType.UNKNOWN:
            definition.modification_type = ModificationType.DYNAMIC

        if definition.mass_correction_tag == INITIAL_UNKNOWN_MASS_CORRECTION_TAG_NAME:
            definition.mass_correction_tag = self.lookup_mass_correction_tag_by_mass(mass)

        if not valid:
            logger.warning(f"Skipping invalid modification definition: {chr(9).join(row)}")
            return None
        return definition

    def write_mod_summary_file(self, file_path: Union[str, Path]) -> int:
        """Write the ModSummary file (definitions and occurrence counts).

        Auto-registered unknown mods that were never applied are skipped.

        Returns
        -------
        int
            Number of rows written
        """
        rows_written = 0
        with open(file_path, 'w', newline='') as f:
            writer = csv.writer(f, delimiter='\t', lineterminator='\n')
            writer.writerow(MOD_SUMMARY_COLUMNS)
            for definition in self.modifications:
                if definition.occurrence_count <= 0 and definition.unknown_mod_auto_defined:
                    continue
                writer.writerow([
                    definition.modification_symbol,
                    f"{definition.modification_mass:.6f}",
                    definition.target_residues,
                    definition.modification_type.symbol,
                    definition.mass_correction_tag,
                    definition.occurrence_count,
                ])
                rows_written += 1
        return rows_written

    # =========================================================================
    # Merging
    # =========================================================================

    def merge(self, other: 'ModificationRegistry',
              digits_of_precision: int = MASS_DIGITS_OF_PRECISION) -> Dict[int, ModificationDefinition]:
        """Merge the definitions of a registry built on another partition.

        Definitions with the same type, the same rounded mass and the same
        target residues are combined and their occurrence counts summed.
        Other definitions are copied; a dynamic mod whose symbol is taken
        gets the next free symbol.

        Returns
        -------
        dict
            Maps id() of each definition in other to its definition in self
        """
        mapping = {}
        for incoming in other.modifications:
            existing = self._find_merge_target(incoming, digits_of_precision)
            if existing is not None:
                existing.occurrence_count += incoming.occurrence_count
                mapping[id(incoming)] = existing
                continue

            for tag_name, tag_mass in other._mass_correction_tags.items():
                if tag_name not in self._mass_correction_tags:
                    self._mass_correction_tags[tag_name] = tag_mass

            copied = replace(incoming)
            symbol_taken = any(
                definition.modification_symbol == copied.modification_symbol
                for definition in self.modifications
            )
            if copied.modification_type in _SYMBOL_TYPES and symbol_taken:
                copied.modification_symbol = self._next_modification_symbol()
            else:
                self._default_modification_symbols = deque(
                    symbol for symbol in self._default_modification_symbols
                    if symbol != copied.modification_symbol
                )
            self.modifications.append(copied)
            mapping[id(incoming)] = copied

        return mapping

    def _find_merge_target(self, incoming: ModificationDefinition,
                           digits_of_precision: int) -> Optional[ModificationDefinition]:
        for existing in self.modifications:
            if existing.modification_type != incoming.modification_type:
                continue
            if existing.affected_atom != incoming.affected_atom:
                continue
            if round(existing.modification_mass, digits_of_precision) != round(incoming.modification_mass, digits_of_precision):
                continue
            if sorted(existing.target_residues) == sorted(incoming.target_residues):
                return existing
        return None


def _closest(matched) -> ModificationDefinition:
    closest_diff, closest = matched[0]
    for mass_diff, definition in matched[1:]:
        if mass_diff < closest_diff:
            closest_diff, closest = mass_diff, definition
    return closest


def parse_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None
