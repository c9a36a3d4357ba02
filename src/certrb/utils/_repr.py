# utils/_repr.py
"""String representations shared by the package classes."""

__all__ = [
    "str2repr",
    "summary_lines",
]


def summary_lines(title: str, fields: dict) -> str:
    """Indented multi-line summary of an object.

    Fields whose value is ``None`` are omitted.

    Parameters
    ----------
    title : str
        First line of the summary, usually the class name.
    fields : dict
        Labels and values to list below the title, one per line.
    """
    width = max((len(label) for label in fields), default=0)
    out = [title]
    for label, value in fields.items():
        if value is not None:
            out.append(f"{label + ':':<{width + 1}} {value}")
    return "\n  ".join(out)


def str2repr(obj) -> str:
    """Unique object ID followed by the string representation."""
    uniqueID = f"<{obj.__class__.__name__} object at {hex(id(obj))}>"
    return f"{uniqueID}\n{str(obj)}"
