#!/usr/bin/env python
"""Normalize a search engine result file into a synopsis file.

Reads the engine's tab-delimited results, resolves every modification
against one modification registry, computes theoretical masses and
isotope-corrected mass errors, and writes:

1. <output>_syn.txt       one line per PSM, scores copied from the engine
2. <output>_ModSummary.txt  registered modifications with occurrence counts

Example:
    python scripts/normalize_psms.py results.tsv --engine MS-GF+ --params MSGFPlus_Mods.txt
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import argparse
import logging

from alphapsm.adapters import get_adapter
from alphapsm.annotator import SearchResultAnnotator
from alphapsm.config import AnnotationOptions, SearchEngineParameters
from alphapsm.mass_calculator import PeptideMassCalculator
from alphapsm.output import write_synopsis_file
from alphapsm.registry import ModificationRegistry

logger = logging.getLogger("normalize_psms")


def main():
    parser = argparse.ArgumentParser(description='Normalize search engine PSMs into a synopsis file')
    parser.add_argument('input', type=str, help='Search engine results (tab-delimited)')
    parser.add_argument('--engine', type=str, required=True,
                        help='Search engine, e.g. MS-GF+, SEQUEST, MaxQuant, DIA-NN')
    parser.add_argument('--params', type=str, default=None,
                        help='Search parameter file with StaticMod/DynamicMod lines')
    parser.add_argument('--mod-defs', type=str, default=None,
                        help='Tab-delimited modification definitions file')
    parser.add_argument('--mass-correction-tags', type=str, default=None,
                        help='Mass correction tags file (tag name and mass)')
    parser.add_argument('--output', type=str, default=None,
                        help='Output base name (default: input name without extension)')
    parser.add_argument('--no-c13-adjust', action='store_true',
                        help='Do not correct the precursor mass for 13C isotope selection')
    parser.add_argument('--verbose', action='store_true', help='Debug logging')
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    input_path = Path(args.input).expanduser()
    output_base = Path(args.output).expanduser() if args.output else input_path.with_suffix('')
    synopsis_path = output_base.parent / f"{output_base.name}_syn.txt"
    mod_summary_path = output_base.parent / f"{output_base.name}_ModSummary.txt"

    adapter = get_adapter(args.engine)

    print("=" * 80)
    print(f"AlphaPSM: {adapter.search_engine_name} results")
    print("=" * 80)
    print(f"Input: {input_path}")
    print(f"Synopsis: {synopsis_path}")

    registry = ModificationRegistry()
    if args.mass_correction_tags:
        registry.read_mass_correction_tags_file(args.mass_correction_tags)
    if args.mod_defs:
        registry.read_modification_definitions_file(args.mod_defs)

    if args.params:
        parameters = SearchEngineParameters.from_param_file(args.params, adapter.search_engine_name)
    else:
        parameters = SearchEngineParameters(search_engine_name=adapter.search_engine_name)

    options = AnnotationOptions.for_engine(adapter.search_engine_name)
    options.adjust_precursor_mass_for_c13 = not args.no_c13_adjust

    annotator = SearchResultAnnotator.from_parameters(
        parameters, registry, PeptideMassCalculator(options.charge_carrier_mass), options)

    results = annotator.annotate_rows(adapter.read_rows(input_path))
    written = write_synopsis_file(synopsis_path, results, adapter.SCORE_COLUMNS)
    registry.write_mod_summary_file(mod_summary_path)

    print(f"\nPSMs written: {written}")
    print(f"PSMs with errors: {annotator.rows_with_errors}")
    print(f"Modifications registered: {len(registry)}")
    print("=" * 80)


if __name__ == '__main__':
    main()
