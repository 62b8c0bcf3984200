"""Stack trace rendering of exceptions for the error stack field."""

from __future__ import annotations

import os
import traceback
from typing import Any, Optional

stack_source_file_name = "source"
stack_source_line_name = "line"
stack_source_function_name = "func"


def _unwrap(error: BaseException) -> Optional[BaseException]:
    if error.__cause__ is not None:
        return error.__cause__
    if error.__context__ is not None and not error.__suppress_context__:
        return error.__context__
    return None


def marshal_stack(error: Optional[BaseException]) -> Any:
    """Return the stack of ``error`` as a list of frame mappings.

    The first exception in the cause chain that carries a traceback is
    used; its frames are listed innermost first. Returns None when no
    exception in the chain has one.
    """
    seen: set[int] = set()
    current = error
    while current is not None and id(current) not in seen:
        if current.__traceback__ is not None:
            break
        seen.add(id(current))
        current = _unwrap(current)
    else:
        return None
    frames = traceback.extract_tb(current.__traceback__)
    out = []
    for frame in reversed(frames):
        entry = {
            stack_source_file_name: os.path.basename(frame.filename),
            stack_source_line_name: str(frame.lineno),
            stack_source_function_name: frame.name,
        }
        out.append(dict(sorted(entry.items())))
    return out