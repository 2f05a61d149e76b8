"""Search engine adapters: read engine result files into RawPsmRow objects."""

from .base import (
    EngineAdapter,
    ExtractedModification,
    RawPsmRow,
    ResultsFileFormat,
    extract_numeric_modifications,
    extract_symbol_modifications,
)
from .diann import DiannAdapter
from .factory import get_adapter
from .inspect_syn import InSpecTAdapter
from .maxquant import MaxQuantAdapter
from .moda import MODaAdapter, MODPlusAdapter
from .msfragger import MSFraggerAdapter
from .msgfplus import MSGFPlusAdapter
from .mspathfinder import MSPathFinderAdapter
from .sequest import SequestAdapter
from .toppic import MSAlignAdapter, TopPICAdapter, extract_bracket_modifications
from .xtandem import XTandemAdapter

__all__ = [
    "EngineAdapter",
    "ExtractedModification",
    "RawPsmRow",
    "ResultsFileFormat",
    "extract_numeric_modifications",
    "extract_symbol_modifications",
    "extract_bracket_modifications",
    "get_adapter",
    "SequestAdapter",
    "MSGFPlusAdapter",
    "MODaAdapter",
    "MODPlusAdapter",
    "MSAlignAdapter",
    "TopPICAdapter",
    "MSFraggerAdapter",
    "MaxQuantAdapter",
    "DiannAdapter",
    "MSPathFinderAdapter",
    "XTandemAdapter",
    "InSpecTAdapter",
]
