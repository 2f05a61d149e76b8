"""Pytest configuration for AlphaPSM tests.

This module provides common fixtures and configuration for all tests.
"""

import numpy as np
import pytest


@pytest.fixture
def registry():
    """Fresh modification registry with the default mass correction tags."""
    from alphapsm.registry import ModificationRegistry
    return ModificationRegistry()


@pytest.fixture
def calculator():
    """Peptide mass calculator with default residue and terminus masses."""
    from alphapsm.mass_calculator import PeptideMassCalculator
    return PeptideMassCalculator()


@pytest.fixture
def classifier():
    """Trypsin cleavage classifier."""
    from alphapsm.cleavage import PeptideCleavageClassifier
    return PeptideCleavageClassifier()


@pytest.fixture
def evaluator():
    """Chemical formula evaluator."""
    from alphapsm.formula import ChemicalFormulaEvaluator
    return ChemicalFormulaEvaluator()


@pytest.fixture
def annotator(registry, calculator, classifier):
    """Annotator sharing the registry and calculator fixtures."""
    from alphapsm.annotator import SearchResultAnnotator
    return SearchResultAnnotator(registry, calculator, classifier)


@pytest.fixture
def known_peptide_masses():
    """Known neutral monoisotopic peptide masses (residues + H2O)."""
    return {
        "LCDE": 478.17333,
        "PEPTIDE": 799.35995,
        "MPEPTIDE": 930.40043,
    }


@pytest.fixture
def msgf_param_file(tmp_path):
    """MS-GF+ style parameter file with static and dynamic mods."""
    content = "\n".join([
        "# MS-GF+ parameters",
        "EnzymeID=1",
        "PrecursorMassTolerance=20ppm",
        "NTT=2",
        "StaticMod=C2H3N1O1,C,fix,any,Carbamidomethyl    # Fixed Carbamidomethyl C",
        "DynamicMod=O1,M,opt,any,Oxidation",
        "DynamicMod=HO3P,STY,opt,any,Phospho",
        "DynamicMod=C2H2O,*,opt,Prot-N-term,Acetyl",
        "",
    ])
    file_path = tmp_path / "MSGFPlus_Params.txt"
    file_path.write_text(content)
    return file_path


@pytest.fixture
def write_tsv(tmp_path):
    """Write rows to a tab-delimited file and return its path."""
    def _write(name, header, rows):
        lines = ["\t".join(header)]
        lines.extend("\t".join(str(value) for value in row) for row in rows)
        file_path = tmp_path / name
        file_path.write_text("\n".join(lines) + "\n")
        return file_path
    return _write


# Random seed for reproducibility
@pytest.fixture(scope="session", autouse=True)
def set_random_seed():
    """Set random seed for reproducible tests."""
    np.random.seed(42)
