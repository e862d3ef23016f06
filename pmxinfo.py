"""
pmxinfo.py - Inspect PMX models.
Version 1.0.0

Loads a PMX model with pmxread and reports its structure:
    - Model name and comment
    - Header settings (version, text encoding, additional UVs, index sizes)
    - Element counts for every section
    - Element names for the requested sections (materials, bones, morphs, ...)

The model is only read, the file is never modified.

LICENCE: GPL-3.0-or-later (https://www.gnu.org/licenses/gpl-3.0.en.html)
"""

from typing import Dict, Iterable, List, Optional, Tuple

import pmxread

import logging
# Set up logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(filename)s : %(levelname)s - %(message)s')


# Sections whose element names can be listed, and how to reach them on a model
LIST_SECTIONS: Dict[str, str] = {
    "TEXTURE": "textures",
    "MATERIAL": "materials",
    "BONE": "bones",
    "MORPH": "morphs",
    "DISPLAY": "display_groups",
    "RIGID": "rigids",
    "JOINT": "joints",
}


def element_label(element) -> str:
    """Name of an element for listing. Textures are plain paths."""
    if isinstance(element, str):
        return element
    if element.name_e:
        return f"{element.name} ({element.name_e})"
    return element.name


def summarize(model: pmxread.Model, lists: Iterable[str] = ()) -> List[str]:
    """Build report lines for a decoded model."""
    header = model.header
    lines = [
        f"name: {model.info.name}",
        f"name_e: {model.info.name_e}",
        f"version: {header.version:.1f}, encoding: {header.encoding.charset}, additional uvs: {header.additional_uvs}",
        f"index sizes: vertex {header.vertex_index_size}, texture {header.texture_index_size}, "
        f"material {header.material_index_size}, bone {header.bone_index_size}, "
        f"morph {header.morph_index_size}, rigid {header.rigid_index_size}",
        f"vertex: {len(model.vertices)}",
        f"face: {len(model.faces) // 3}",
        f"texture: {len(model.textures)}",
        f"material: {len(model.materials)}",
        f"bone: {len(model.bones)}",
        f"morph: {len(model.morphs)}",
        f"display group: {len(model.display_groups)}",
        f"rigid: {len(model.rigids)}",
        f"joint: {len(model.joints)}",
    ]

    for section in lists:
        attr = LIST_SECTIONS.get(section.upper())
        if attr is None:
            raise ValueError(f"Unknown section '{section}'. Any of: " + ", ".join(LIST_SECTIONS))
        lines.append(f"[{section.upper()}]")
        for i, element in enumerate(getattr(model, attr)):
            lines.append(f"  {i}: {element_label(element)}")

    return lines


def load_pmx_file(path: str) -> Optional[pmxread.Model]:
    """Load a PMX model from the specified path. Returns None on failure."""
    try:
        return pmxread.load(path)
    except (pmxread.PmxError, OSError) as e:
        logging.error(f"Error loading PMX model from '{path}': {e}")
        return None


# Main function to load and report a PMX model file
def inspect_pmx_file(path: str, lists: Iterable[str] = ()) -> Tuple[bool, str]:
    """Load a PMX model and build its report. Returns a tuple of success status and message."""
    logging.info(f"▶️ Inspecting: {path}")

    if not path:
        return False, "Input path must be specified."

    lists = list(lists)
    unknown = [s for s in lists if s.upper() not in LIST_SECTIONS]
    if unknown:
        return False, f"Unknown sections: {', '.join(unknown)}. Any of: " + ", ".join(LIST_SECTIONS)

    model = load_pmx_file(path)
    if model is None:
        return False, f"Failed to load model from '{path}'. Please check the file path and format."

    logging.info(f"Model '{path}': {len(model.vertices)} vertices, {len(model.materials)} materials, {len(model.morphs)} morphs")
    return True, "\n".join(summarize(model, lists))
