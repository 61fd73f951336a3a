"""Mask templates for pattern-based puzzle generation.

A mask is 81 letters between ``A`` and ``I`` in row-major order. Cells that
share a letter receive the same digit under a random letter-to-digit
bijection chosen for each generation run. Collections of masks ship either
as the literals below or as line-oriented text files, optionally packed as
the single entry of a zip archive.
"""

from __future__ import annotations

import io
import random
import zipfile
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..core.constants import CELL_COUNT, DIGITS, MASK_LETTERS
from ..core.exceptions import MaskFormatError
from ..utils.logger import get_logger


LOGGER = get_logger(__name__)

MASK_TEMPLATES: List[str] = [
    "ABCDEFGHI"
    "DEFGHIABC"
    "GHIABCDEF"
    "BCDEFGHIA"
    "EFGHIABCD"
    "HIABCDEFG"
    "CDEFGHIAB"
    "FGHIABCDE"
    "IABCDEFGH",
    "ECDFGHIAB"
    "FGBAIECDH"
    "AIHCDBEFG"
    "HEIGFADBC"
    "DBFHECGIA"
    "GACIBDHEF"
    "IFAECGBHD"
    "BHGDAIFCE"
    "CDEBHFAGI",
    # Symmetric under 180 degree rotation and under transposition, up to a
    # relabelling of letters.
    "ADGBEHCFI"
    "BEHCFIADG"
    "CFIADGBEH"
    "DGAEHBFIC"
    "EHBFICDGA"
    "FICDGAEHB"
    "GADHBEICF"
    "HBEICFGAD"
    "ICFGADHBE",
]


def parse_mask(text: str) -> str:
    """Normalize and validate a mask string."""
    mask = "".join(text.split()).upper()
    if len(mask) != CELL_COUNT:
        raise MaskFormatError(f"Mask must have {CELL_COUNT} letters, got {len(mask)}")
    invalid = sorted(set(mask) - set(MASK_LETTERS))
    if invalid:
        raise MaskFormatError(f"Mask contains invalid letters: {''.join(invalid)}")
    return mask


def build_letter_map(rng: random.Random) -> Dict[str, int]:
    """Return a random bijection from mask letters to digits."""
    digits = list(DIGITS)
    rng.shuffle(digits)
    return dict(zip(MASK_LETTERS, digits))


def _read_lines(path: Path) -> List[str]:
    if path.suffix.lower() == ".zip":
        with zipfile.ZipFile(path) as archive:
            names = [info.filename for info in archive.infolist() if not info.is_dir()]
            if not names:
                raise MaskFormatError(f"Mask archive {path} is empty")
            with archive.open(names[0]) as handle:
                return io.TextIOWrapper(handle, encoding="utf-8").read().splitlines()
    return path.read_text(encoding="utf-8").splitlines()


def load_masks(path: Path | str) -> List[str]:
    """Read masks from a file, one per line. Blank lines and # comments are skipped."""
    path = Path(path)
    masks: List[str] = []
    for line in _read_lines(path):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        masks.append(parse_mask(line))
    LOGGER.info("Loaded %d masks from %s", len(masks), path)
    return masks


def random_mask(rng: random.Random, masks: Optional[Sequence[str]] = None) -> str:
    pool = list(masks) if masks else MASK_TEMPLATES
    return rng.choice(pool)
