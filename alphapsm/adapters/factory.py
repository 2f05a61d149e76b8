"""Look up the adapter for a search engine."""

from typing import Dict, Type, Union

from .base import EngineAdapter, ResultsFileFormat
from .diann import DiannAdapter
from .inspect_syn import InSpecTAdapter
from .maxquant import MaxQuantAdapter
from .moda import MODaAdapter, MODPlusAdapter
from .msfragger import MSFraggerAdapter
from .msgfplus import MSGFPlusAdapter
from .mspathfinder import MSPathFinderAdapter
from .sequest import SequestAdapter
from .toppic import MSAlignAdapter, TopPICAdapter
from .xtandem import XTandemAdapter

ADAPTERS: Dict[ResultsFileFormat, Type[EngineAdapter]] = {
    ResultsFileFormat.SEQUEST: SequestAdapter,
    ResultsFileFormat.MSGFPLUS: MSGFPlusAdapter,
    ResultsFileFormat.MODA: MODaAdapter,
    ResultsFileFormat.MODPLUS: MODPlusAdapter,
    ResultsFileFormat.MSALIGN: MSAlignAdapter,
    ResultsFileFormat.TOPPIC: TopPICAdapter,
    ResultsFileFormat.MSFRAGGER: MSFraggerAdapter,
    ResultsFileFormat.MAXQUANT: MaxQuantAdapter,
    ResultsFileFormat.DIANN: DiannAdapter,
    ResultsFileFormat.MSPATHFINDER: MSPathFinderAdapter,
    ResultsFileFormat.XTANDEM: XTandemAdapter,
    ResultsFileFormat.INSPECT: InSpecTAdapter,
}


def get_adapter(engine: Union[str, ResultsFileFormat]) -> EngineAdapter:
    """Create the adapter for an engine name (e.g. "MS-GF+") or format.

    Raises
    ------
    ValueError
        If the engine is not supported
    """
    if not isinstance(engine, ResultsFileFormat):
        engine = ResultsFileFormat.from_name(engine)
    return ADAPTERS[engine]()
