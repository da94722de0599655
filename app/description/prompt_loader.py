from pathlib import Path

_DEFAULT_PROMPT_DIR = Path(__file__).parent / "prompts"


def load_description_prompt(path: Path | None = None) -> str:
    """Load the fixed image-description instruction.

    Args:
        path: Path to a prompt file.
              Defaults to the bundled description_prompt.txt.

    Raises:
        OSError: if the file cannot be read. Raised at startup, not per request.
    """
    if path is None:
        path = _DEFAULT_PROMPT_DIR / "description_prompt.txt"
    return path.read_text(encoding="utf-8").strip()
