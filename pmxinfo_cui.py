import argparse
import logging
import sys

import pmxinfo

VERSION = "1.0.0"  # Version of the PMX Info Tool

if __name__ == "__main__":
    # Usage: python pmxinfo_cui.py --input <model.pmx>
    # Alias: python pmxinfo_cui.py -i <model.pmx>
    # Optional arguments:
    # --list <section> : List element names of the specified sections.
    # --verbose        : Show per-section debug output while decoding.

    parser = argparse.ArgumentParser(description="Print the structure of a PMX model.")
    parser.add_argument("--input", "-i", type=str, default="",
                        help="PMX file path to inspect. Must be specified.")

    parser.add_argument("--list", "-l", type=str, nargs='*', default=None,
                        help="Sections to list element names for. Any of: " + ", ".join(pmxinfo.LIST_SECTIONS))

    parser.add_argument("--verbose", "-v", action='store_true',
                        help="Enable debug logging.")

    parser.add_argument("--version", action='version', version=f'PMX Info Tool {VERSION}',)

    args = parser.parse_args()

    if args.list is None:
        args.list = []

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    if not args.input:
        print("Error: Input PMX file must be specified.")
        sys.exit(1)

    ret, msg = pmxinfo.inspect_pmx_file(args.input, lists=args.list)
    if not ret:
        print(f"Error: {msg}")
        sys.exit(1)
    print(msg)

# End of pmxinfo_cui.py
