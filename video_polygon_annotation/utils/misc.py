import importlib.util
import re
from pathlib import Path
from typing import Tuple


def load_module(script_path: Path, module_name: str = "module"):
    spec = importlib.util.spec_from_file_location(module_name, str(script_path))
    assert spec is not None, f"Can't import module at '{str(script_path)}'"
    model_script = importlib.util.module_from_spec(spec)
    assert spec.loader is not None
    spec.loader.exec_module(model_script)

    return model_script


_SIZE_RE = re.compile(r"^\s*(\d+)\s*[xX×,]\s*(\d+)\s*$")


def parse_size(text: str) -> Tuple[int, int]:
    """Parse a ``WIDTHxHEIGHT`` string such as ``800x600``."""
    match = _SIZE_RE.match(text)
    if match is None:
        raise ValueError(f"Invalid size '{text}', expected WIDTHxHEIGHT")
    width, height = int(match.group(1)), int(match.group(2))
    if width <= 0 or height <= 0:
        raise ValueError(f"Size must be positive, got {width}x{height}")
    return width, height
