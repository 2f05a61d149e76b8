"""Physical constants and amino acid tables for PSM normalization.

This module provides the residue mass tables, terminus symbols and default
modification naming tables used throughout AlphaPSM. Element and isotope
masses come from ``pyteomics.mass.nist_mass``.

Constants are provided in both dictionary and ord()-indexed array formats
for compatibility with both standard Python and Numba JIT-compiled code.

Key Features
------------
- MaxQuant heavy-isotope shorthand mapped to pyteomics isotope keys
- Residue masses for all 26 one-letter codes, with pyteomics compositions
- ord()-indexed AA_MASSES array (NaN marks characters without a mass)
- Default mass correction tags used to name modifications

Sources
-------
- NIST physical constants: https://physics.nist.gov/cgi-bin/cuu/Value
- Unimod modification masses: https://www.unimod.org/modifications_list.php
"""

import numpy as np
from pyteomics.mass import Composition, std_aa_comp

# =============================================================================
# Fundamental Physical Constants
# =============================================================================

# Proton mass (NOT hydrogen atom mass!)
# Source: NIST 2018 CODATA
PROTON_MASS = 1.007276466622  # Da

# Electron mass
# Source: NIST 2018 CODATA
ELECTRON_MASS = 0.000548579909  # Da

# Hydrogen and oxygen atoms, as used for the peptide termini
HYDROGEN_MASS = 1.0078246  # Da
OXYGEN_MASS = 15.9949141  # Da

# Default peptide terminus masses: H on the N-terminus, OH on the C-terminus
DEFAULT_N_TERMINUS_MASS = HYDROGEN_MASS
DEFAULT_C_TERMINUS_MASS = OXYGEN_MASS + HYDROGEN_MASS

# =============================================================================
# Isotope Masses
# =============================================================================

# Mass difference between C13 and C12
# Used to correct for isotope-selection errors in precursor masses
C13_MASS_DIFFERENCE = 1.00335483  # Da

# MaxQuant shorthand for heavy isotopes, as pyteomics isotope keys
# Deuterium is written as its own symbol in most formula notations
HEAVY_ISOTOPE_SHORTHAND = {
    "Cx": "C[13]",
    "Nx": "N[15]",
    "Ox": "O[18]",
    "Hx": "H[2]",
    "D": "H[2]",
}

# =============================================================================
# Amino Acid Monoisotopic Masses (Da)
# =============================================================================

# Residue masses (not including N/C terminals) for all 26 one-letter codes
# B, Z and X use the masses of N, Q and L/I; J has no defined mass
AA_MONO_MASSES = {
    'A': 71.0371100902557,   # Alanine
    'B': 114.042921543121,   # Asn/Asp -> Asn
    'C': 103.009180784225,   # Cysteine (unmodified)
    'D': 115.026938199997,   # Aspartic acid
    'E': 129.042587518692,   # Glutamic acid
    'F': 147.068408727646,   # Phenylalanine
    'G': 57.0214607715607,   # Glycine
    'H': 137.058904886246,   # Histidine
    'I': 113.084058046341,   # Isoleucine
    'J': 0.0,                # Leu/Ile ambiguity, mass not defined
    'K': 128.094955444336,   # Lysine
    'L': 113.084058046341,   # Leucine
    'M': 131.040479421616,   # Methionine
    'N': 114.042921543121,   # Asparagine
    'O': 114.079306125641,   # Ornithine
    'P': 97.0527594089508,   # Proline
    'Q': 128.058570861816,   # Glutamine
    'R': 156.101100921631,   # Arginine
    'S': 87.0320241451263,   # Serine
    'T': 101.047673463821,   # Threonine
    'U': 150.95363,          # Selenocysteine (C3H5NOSe)
    'V': 99.0684087276459,   # Valine
    'W': 186.079306125641,   # Tryptophan
    'X': 113.084058046341,   # Unknown -> Leu/Ile
    'Y': 163.063322782516,   # Tyrosine
    'Z': 128.058570861816,   # Gln/Glu -> Gln
}

# Residue compositions from pyteomics.mass (residue = amino acid minus H2O)
# B, Z and X borrow the compositions of N, Q and L; O is ornithine
# rather than the pyteomics pyrrolysine
_COMPOSITION_ALIASES = {'B': 'N', 'Z': 'Q', 'X': 'L'}

AA_COMPOSITIONS = {'J': Composition({}), 'O': Composition({'C': 5, 'H': 10, 'N': 2, 'O': 1})}

for aa in AA_MONO_MASSES:
    if aa not in AA_COMPOSITIONS:
        AA_COMPOSITIONS[aa] = Composition(std_aa_comp[_COMPOSITION_ALIASES.get(aa, aa)])

# =============================================================================
# ord()-Indexed Arrays for Numba
# =============================================================================

# Array size 256 covers full ASCII range
# Access via: AA_MASSES[ord('A')] -> 71.03711
# Characters without a residue mass are NaN
AA_MASSES = np.full(256, np.nan, dtype=np.float64)

for aa, mass in AA_MONO_MASSES.items():
    AA_MASSES[ord(aa)] = mass

# =============================================================================
# Sequence and Terminus Symbols
# =============================================================================

# Terminus symbols used in prefix/suffix residues
TERMINUS_SYMBOL_SEQUEST = '-'
TERMINUS_SYMBOL_XTANDEM_N_TERMINUS = '['
TERMINUS_SYMBOL_XTANDEM_C_TERMINUS = ']'

# Terminus symbols used in modification target residues
N_TERMINAL_PEPTIDE_SYMBOL = '<'
C_TERMINAL_PEPTIDE_SYMBOL = '>'
N_TERMINAL_PROTEIN_SYMBOL = '['
C_TERMINAL_PROTEIN_SYMBOL = ']'

TERMINUS_TARGET_SYMBOLS = (
    N_TERMINAL_PEPTIDE_SYMBOL,
    C_TERMINAL_PEPTIDE_SYMBOL,
    N_TERMINAL_PROTEIN_SYMBOL,
    C_TERMINAL_PROTEIN_SYMBOL,
)

# Affected atom placeholder for non-isotopic modifications
NO_AFFECTED_ATOM_SYMBOL = '-'

# =============================================================================
# Modification Naming
# =============================================================================

# Symbols handed out, in order, to dynamic modifications without a symbol
DEFAULT_MODIFICATION_SYMBOLS = "*#@$&!%~^`+="

# Symbol used once DEFAULT_MODIFICATION_SYMBOLS is exhausted
LAST_RESORT_MODIFICATION_SYMBOL = '_'

# Symbol for static, terminal and isotopic modifications
NO_SYMBOL_MODIFICATION_SYMBOL = '-'

UNKNOWN_MOD_BASE_NAME = "UnkMod"
INITIAL_UNKNOWN_MASS_CORRECTION_TAG_NAME = "UnkMod00"

# Rounding applied when comparing modification masses
MASS_DIGITS_OF_PRECISION = 3

# Default mass correction tags (name -> monoisotopic mass shift)
DEFAULT_MASS_CORRECTION_TAGS = {
    "4xDeut": 4.025107,
    "6C134N15": 10.008269,
    "6xC13N15": 7.017164,
    "AcetAmid": 41.02655,
    "Acetyl": 42.010567,
    "Acrylmid": 71.037117,
    "ADPRibos": 541.061096,
    "AlkSulf": -25.0316,
    "Aminaton": 15.010899,
    "AmOxButa": -2.01565,
    "Bromo": 77.910507,
    "BS3Olnk": 156.078644,
    "C13DtFrm": 36.07567,
    "Carbamyl": 43.005814,
    "Cyano": 24.995249,
    "Cys-Dha": -33.98772,
    "Cystnyl": 119.004097,
    "Deamide": 0.984016,
    "DeutForm": 32.056407,
    "DeutMeth": 17.034479,
    "Dimethyl": 28.0313,
    "DTBP_Alk": 144.03573,
    "Formyl": 27.994915,
    "GalNAFuc": 648.2603,
    "GalNAMan": 664.2551,
    "Gluthone": 305.068146,
    "Guanid": 42.021797,
    "Heme_615": 615.169458,
    "Hexosam": 203.079376,
    "Hexose": 162.052826,
    "ICAT_D0": 442.225006,
    "ICAT_D8": 450.275208,
    "IodoAcet": 57.021465,
    "IodoAcid": 58.005478,
    "Iso_N15": 0.997035,
    "itrac": 144.102066,
    "iTRAQ8": 304.205353,
    "LeuToMet": 17.956421,
    "Lipid2": 576.51178,
    "Mercury": 199.9549,
    "Met_O18": 16.028204,
    "Methyl": 14.01565,
    "Methylmn": 13.031634,
    "MinusH2O": -18.010565,
    "NEM": 125.047676,
    "NH3_Loss": -17.026548,
    "NHS_SS": 87.998283,
    "NO2_Addn": 44.985077,
    "None": 0.0,
    "OMinus2H": 13.979265,
    "One_C12": 12.0,
    "One_O18": 2.004246,
    "OxoAla": -17.992805,
    "palmtlic": 236.21402,
    "PCGalNAz": 502.202332,
    "PEO": 414.193695,
    "PhosAden": 329.052521,
    "Phosph": 79.966331,
    "PhosUrid": 306.025299,
    "Plus1Oxy": 15.994915,
    "Plus2Oxy": 31.989828,
    "Plus3Oxy": 47.984745,
    "Propnyl": 56.026215,
    "Pyro-cmC": 39.994915,
    "SATA_Alk": 131.0041,
    "SATA_Lgt": 115.9932,
    "Sucinate": 116.010956,
    "SulfoNHS": 226.077591,
    "Sumoylat": 484.228149,
    "TMT0Tag": 224.152481,
    "TMT6Tag": 229.162933,
    "TriMeth": 42.046951,
    "Two_O18": 4.008491,
    "Ubiq_02": 114.042931,
    "Ubiq_L": 100.016045,
    "ValToMet": 31.972071,
}

# Tag names for integer mass shifts, consulted when matching at 0 digits
INTEGER_MASS_CORRECTION_TAGS = {
    -18: "MinusH2O",
    -17: "NH3_Loss",
    -11: "AsnToCys",
    -8: "HisToGlu",
    -7: "TyrToArg",
    -4: "ThrToPro",
    -3: "MetToLys",
    -1: "Dehydro",
    1: "Deamide",
    2: "GluToMet",
    4: "TrypOxy",
    5: "5C13",
    6: "6C13",
    10: "D10-Leu",
    13: "Methylmn",
    14: "Methyl",
    16: "Plus1Oxy",
    18: "LeuToMet",
    25: "Cyano",
    28: "Dimethyl",
    32: "Plus2Oxy",
    42: "Acetyl",
    43: "Carbamyl",
    45: "NO2_Addn",
    48: "Plus3Oxy",
    56: "Propnyl",
    58: "IodoAcid",
    80: "Phosph",
    89: "Biotinyl",
    96: "PhosphH",
    104: "Ubiq_H",
    116: "Sucinate",
    119: "Cystnyl",
    125: "NEM",
    144: "itrac",
    215: "MethylHg",
    236: "ICAT_C13",
    442: "ICAT_D0",
}

# Common modification masses looked up by (case-insensitive) name
NAMED_MODIFICATION_MASSES = {
    "amidated": -0.984016,
    "deamidated": 0.984016,
    "deamidation": 0.984016,
    "methyl": 14.01565,
    "methylation": 14.01565,
    "oxidation": 15.994915,
    "dimethyl": 28.0313,
    "acetyl": 42.010567,
    "acetylation": 42.010567,
    "carbamidomethyl": 57.021464,
    "carbamidomethylation": 57.021464,
    "phospho": 79.966331,
    "phosphorylation": 79.966331,
    "gln->pyro-glu": -17.026549,
    "glu->pyro-glu": -18.010565,
    "gg": 114.042927,
    "itraq4plex": 144.102063,
    "tmt6plex": 229.162932,
}

# Losses tried before registering an unknown modification on Q or E
NH3_LOSS_MASS = -17.026549
H2O_LOSS_MASS = -18.0106


def validate_constants() -> bool:
    """Validate that the residue tables are internally consistent.

    Recomputes each residue mass from its composition and checks it
    against the tabulated mass.

    Returns
    -------
    bool
        True if all residue masses agree with their compositions to 0.001 Da
    """
    for aa, composition in AA_COMPOSITIONS.items():
        if AA_MONO_MASSES[aa] == 0.0:
            continue
        if abs(composition.mass() - AA_MONO_MASSES[aa]) > 0.001:
            return False
    return True
