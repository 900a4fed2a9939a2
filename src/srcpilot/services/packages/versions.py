"""Version constraint helpers."""

from packaging.specifiers import InvalidSpecifier, SpecifierSet

_OPERATOR_CHARS = "<>=!~"


def constraint_text(version: str | None) -> str:
    """
    Normalise a user supplied version constraint to PEP 440 specifier text.

    A bare version pins it exactly: ``1.2.0`` becomes ``==1.2.0``.
    """
    if version is None or not version.strip():
        return ""
    text = version.strip()
    parts = [part.strip() for part in text.split(",")]
    return ",".join(part if part[:1] in _OPERATOR_CHARS else f"=={part}" for part in parts if part)


def to_specifier(version: str | None) -> SpecifierSet:
    """
    Parse a version constraint.

    Raises:
        ValueError: If the constraint is not a valid specifier
    """
    try:
        return SpecifierSet(constraint_text(version))
    except InvalidSpecifier as e:
        raise ValueError(f"invalid version constraint: {version}") from e


def requirement_string(name: str, version: str | None) -> str:
    """Build a pip requirement such as ``widget>=1.2``."""
    return f"{name}{constraint_text(version)}"
