"""AlphaPSM - Search engine PSM normalization.

Turns peptide-spectrum matches from different search engines into one
record type: modifications resolved against a shared registry, cleavage
and terminus states, theoretical masses and isotope-corrected mass errors.
"""

__version__ = "0.1.0"

from alphapsm.annotator import SearchResultAnnotator
from alphapsm.cleavage import (
    PeptideCleavageClassifier,
    PeptideCleavageState,
    PeptideTerminusState,
    StandardCleavageAgent,
    split_prefix_and_suffix,
)
from alphapsm.config import AnnotationOptions, SearchEngineParameters
from alphapsm.formula import ChemicalFormulaEvaluator, FormulaParseError
from alphapsm.mass_calculator import InvalidResidueError, PeptideMassCalculator
from alphapsm.modifications import ModificationDefinition, ModificationType, ResidueTerminusState
from alphapsm.registry import ModificationRegistry
from alphapsm.search_result import (
    InvalidPositionError,
    ModificationNotFoundError,
    ScoreValue,
    SearchResult,
    compute_del_m_corrected_ppm,
)
from alphapsm.tolerance import PrecursorMassTolerance
from alphapsm import adapters

__all__ = [
    "SearchResultAnnotator",
    "PeptideCleavageClassifier",
    "PeptideCleavageState",
    "PeptideTerminusState",
    "StandardCleavageAgent",
    "split_prefix_and_suffix",
    "AnnotationOptions",
    "SearchEngineParameters",
    "ChemicalFormulaEvaluator",
    "FormulaParseError",
    "InvalidResidueError",
    "PeptideMassCalculator",
    "ModificationDefinition",
    "ModificationType",
    "ResidueTerminusState",
    "ModificationRegistry",
    "InvalidPositionError",
    "ModificationNotFoundError",
    "ScoreValue",
    "SearchResult",
    "compute_del_m_corrected_ppm",
    "PrecursorMassTolerance",
    "adapters",
]
