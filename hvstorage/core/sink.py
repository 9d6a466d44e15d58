"""
Output sink - results file preparation and writing.

Path: hvstorage/core/sink.py

The results file is prepared (created, truncated after confirmation, or
checked for append access) before any cluster query runs, and written
once at the end of the run from the in-memory ResultSet.
"""

import logging
from pathlib import Path
from typing import Callable, Optional

from hvstorage.core.errors import (
    EmptyOutputPathError,
    FileAppendUnavailableError,
    FileCreateError,
    UserDeclinedOverwriteError,
)
from hvstorage.core.models import ResultSet


logger = logging.getLogger(__name__)

YES_ANSWERS = ("yes", "y")
NO_ANSWERS = ("no", "n")

# confirm(question) -> True to overwrite
ConfirmCallback = Callable[[str], bool]


def ask_yes_no(question: str, input_func: Optional[Callable[[str], str]] = None) -> bool:
    """
    Ask a yes/no question until a recognised answer is given.

    Accepts yes, y, no, n in any case. Blocks with no timeout.
    """
    input_func = input_func or input
    while True:
        try:
            answer = input_func(f"{question} (yes/no): ").strip().lower()
        except EOFError:
            # No operator on stdin: never overwrite
            print()
            return False
        if answer in YES_ANSWERS:
            return True
        if answer in NO_ANSWERS:
            return False
        print("Please answer yes or no.")


def always_yes(question: str) -> bool:
    return True


def _create_empty(path: Path):
    try:
        with open(path, "w", encoding="utf-8"):
            pass
    except OSError as e:
        raise FileCreateError(str(path), e.strerror or str(e))


def prepare_sink(
    path: str,
    allow_append: bool = False,
    confirm: Optional[ConfirmCallback] = None,
) -> Path:
    """
    Make the results file ready for writing.

    Args:
        path: Destination file. Parent directories must already exist.
        allow_append: Keep existing content; only check write access.
        confirm: Overwrite confirmation, defaults to an interactive prompt.

    Returns:
        The prepared path.

    Raises:
        EmptyOutputPathError, UserDeclinedOverwriteError,
        FileCreateError, FileAppendUnavailableError
    """
    if not path:
        raise EmptyOutputPathError()

    target = Path(path)
    confirm = confirm or ask_yes_no

    if not target.exists():
        logger.debug(f"Creating results file {target}")
        _create_empty(target)
        return target

    if allow_append:
        try:
            with open(target, "a", encoding="utf-8"):
                pass
        except OSError as e:
            raise FileAppendUnavailableError(str(target), e.strerror or str(e))
        logger.debug(f"Results file {target} is writable, appending")
        return target

    if not confirm(f"File {target} already exists. Overwrite it?"):
        raise UserDeclinedOverwriteError(str(target))

    logger.debug(f"Overwriting results file {target}")
    _create_empty(target)
    return target


def write_results(path: Path, results: ResultSet, append: bool = False):
    """Write header and rows in one pass."""
    mode = "a" if append else "w"
    try:
        with open(path, mode, encoding="utf-8") as f:
            f.write("\n".join(results.lines()) + "\n")
    except OSError as e:
        raise FileCreateError(str(path), e.strerror or str(e))

    logger.info(f"Wrote {len(results)} rows to {path}")
